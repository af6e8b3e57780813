"""
Handles persistence of annotation records to a key/value blob store.
"""
import hashlib
import json
import logging
import os
from pathlib import Path
from typing import Dict, List, Optional, Union

from .models import AnnotationRecord

logger = logging.getLogger(__name__)


def storage_key_for_path(document_path: Union[str, Path]) -> str:
    """
    Get the storage key for a document.

    A hash of the absolute path keeps storage unique per document
    regardless of where the store lives.
    """
    absolute = os.path.abspath(str(document_path))
    return hashlib.md5(absolute.encode()).hexdigest()


class PersistenceAdapter:
    """Interface of a durable key/value store holding opaque strings."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError


class MemoryStorage(PersistenceAdapter):
    """Keeps blobs in a dictionary; nothing survives the process."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.values: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value


class JsonFileStorage(PersistenceAdapter):
    """Stores each blob as ``<key>.json`` inside a directory."""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding='utf-8')

    def set(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        self.path_for(key).write_text(value, encoding='utf-8')


class AnnotationPersistence:
    """Serializes the record list of one document to and from its backend."""

    def __init__(self, backend: PersistenceAdapter, key: str):
        self.backend = backend
        self.key = key

    def load(self) -> List[dict]:
        """
        Load the persisted record entries.

        Returns:
            Raw record dictionaries; empty if nothing usable is stored
        """
        try:
            blob = self.backend.get(self.key)
        except Exception as e:
            logger.warning("Failed to read annotations for %s: %s", self.key, e)
            return []
        if not blob:
            return []

        try:
            data = json.loads(blob)
        except ValueError as e:
            logger.warning("Ignoring unparsable annotations for %s: %s", self.key, e)
            return []

        if not isinstance(data, list):
            logger.warning("Ignoring annotations for %s: expected a list", self.key)
            return []
        return data

    def save(self, records: List[AnnotationRecord]) -> bool:
        """
        Save records, best effort.

        Returns:
            True if the backend accepted the write
        """
        try:
            blob = json.dumps([record.to_dict() for record in records])
            self.backend.set(self.key, blob)
            return True
        except Exception as e:
            logger.warning("Failed to save annotations for %s: %s", self.key, e)
            return False
