"""
Platform directories for user data.
"""
import os
import sys
from pathlib import Path


def get_app_data_dir(app_name: str, create: bool = True) -> Path:
    """
    Get the application data directory for storing user data.

    Args:
        app_name: Name of the application
        create: Whether to create the directory if missing

    Returns:
        Path to the app data directory
    """
    if os.name == 'nt':  # Windows
        base_dir = os.environ.get('APPDATA', os.path.expanduser('~'))
    elif sys.platform == 'darwin':  # macOS
        base_dir = os.path.expanduser('~/Library/Application Support')
    else:  # Linux and others
        base_dir = os.environ.get('XDG_DATA_HOME') or os.path.expanduser('~/.local/share')

    app_dir = Path(base_dir) / app_name
    if create:
        app_dir.mkdir(parents=True, exist_ok=True)

    return app_dir


def get_annotations_dir(app_name: str, create: bool = True) -> Path:
    """Get the directory holding one JSON file per annotated document."""
    annotations_dir = get_app_data_dir(app_name, create=False) / "annotations"
    if create:
        annotations_dir.mkdir(parents=True, exist_ok=True)
    return annotations_dir
