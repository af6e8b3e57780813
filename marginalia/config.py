"""
Application settings.

Values come from ``MARGINALIA_*`` environment variables, falling back to
the defaults below. Tests construct ``Settings(...)`` directly.
"""
from pathlib import Path
from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from marginalia.utils.resource_loader import get_annotations_dir

APP_NAME = "Marginalia"
DEFAULT_CREATOR_NAME = "Anonymous"
DEFAULT_STABLE_PREFIX = "pdfjs_internal_editor_"


class Settings(BaseSettings):
    """
    Runtime settings for an annotation session.

    Environment variables: ``MARGINALIA_APP_NAME``, ``MARGINALIA_DATA_DIR``,
    ``MARGINALIA_USER_NAME``, ``MARGINALIA_STABLE_ID_PREFIX``.
    """

    model_config = SettingsConfigDict(env_prefix="MARGINALIA_", extra="ignore")

    app_name: str = APP_NAME
    data_dir: Optional[Path] = None
    user_name: str = DEFAULT_CREATOR_NAME
    stable_id_prefix: str = DEFAULT_STABLE_PREFIX

    @model_validator(mode="after")
    def _resolve_data_dir(self) -> 'Settings':
        """Default the data directory to the app's platform data directory."""
        if self.data_dir is None:
            self.data_dir = get_annotations_dir(self.app_name, create=False)
        else:
            self.data_dir = self.data_dir.expanduser()
        return self
