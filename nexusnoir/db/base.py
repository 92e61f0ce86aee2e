# Import all models here so create_all can see them
from nexusnoir.db.session import Base

from nexusnoir.modules.user_management.models.user import User
from nexusnoir.modules.posts.models.post import Post
from nexusnoir.modules.posts.comments.models.comment import Comment
from nexusnoir.modules.posts.reactions.models.reaction import Reaction
from nexusnoir.modules.posts.engagement.models.engagement import SavedPost, Repost
from nexusnoir.modules.friendships.models.friendship import Friendship
from nexusnoir.modules.follows.models.follow import Follow
from nexusnoir.modules.notifications.models.notification import Notification
from nexusnoir.modules.auth.models.auth import LoginAttempt, VerificationToken
from nexusnoir.modules.messaging.models.conversation import Conversation, Message
