"""
Utility functions and helpers.
"""
from .resource_loader import get_annotations_dir, get_app_data_dir

__all__ = [
    'get_app_data_dir',
    'get_annotations_dir'
]
