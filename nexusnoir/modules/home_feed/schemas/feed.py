from nexusnoir.modules.posts.schemas.post import PostPage

class FeedResponse(PostPage):
    """Feed page returned to client.

    next_cursor is the id of the last post when the page came back full,
    so a final request may return an empty page.
    """
    pass
