"""
Modules package initialization.
This package contains all the functional modules of the application.
"""

from nexusnoir.modules import auth
from nexusnoir.modules import user_management
from nexusnoir.modules import posts
from nexusnoir.modules import friendships
from nexusnoir.modules import follows
from nexusnoir.modules import notifications
from nexusnoir.modules import home_feed
from nexusnoir.modules import trending
from nexusnoir.modules import media
from nexusnoir.modules import messaging
