"""
Views that follow the annotation store through the event bus.
"""
from .sidebar import CommentCard, CommentSidebarModel

__all__ = ['CommentCard', 'CommentSidebarModel']
