from .comment_sidebar import CommentSidebar

__all__ = ["CommentSidebar"]
