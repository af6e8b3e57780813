"""
Canonical record store for the annotations of one document.
"""
import copy
import logging
import time
from dataclasses import dataclass, replace
from typing import Callable, Dict, Iterable, List, Optional, Union

from PyQt5.QtCore import QObject, pyqtSignal

from marginalia.config import DEFAULT_CREATOR_NAME

from .converter import ParamsConverter
from .models import (
    AnnotationRecord,
    ChangeType,
    Comment,
    Creator,
    MalformedRecordError,
)

logger = logging.getLogger(__name__)


def now_millis() -> int:
    return int(time.time() * 1000)


@dataclass
class StoreChange:
    """One mutation of the store; data is a record, or the full list for INIT."""
    type: ChangeType
    data: Union[AnnotationRecord, List[AnnotationRecord]]

    def to_payload(self) -> dict:
        return {'type': self.type.value, 'data': self.data}


class RecordStore(QObject):
    """
    Maps annotation ids to records, in insertion order.

    Every mutation emits exactly one ``changed`` signal, synchronously and
    in mutation order.
    """

    changed = pyqtSignal(object)  # StoreChange

    def __init__(self, converter: Optional[ParamsConverter] = None,
                 creator_name: str = DEFAULT_CREATOR_NAME,
                 clock: Callable[[], int] = now_millis):
        super().__init__()
        self.converter = converter or ParamsConverter()
        self.creator_name = creator_name
        self._clock = clock
        self._records: Dict[str, AnnotationRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, annotation_id) -> bool:
        return annotation_id in self._records

    def get(self, annotation_id: str) -> Optional[AnnotationRecord]:
        return self._records.get(annotation_id)

    def list(self) -> List[AnnotationRecord]:
        """Get all records in insertion order."""
        return list(self._records.values())

    def init(self, records: Iterable[Union[AnnotationRecord, dict]]) -> List[AnnotationRecord]:
        """
        Replace the store contents with ``records``.

        Entries that are not valid records are skipped individually.

        Returns:
            The resulting record list
        """
        loaded: Dict[str, AnnotationRecord] = {}
        skipped = 0
        for entry in records or []:
            try:
                record = self._coerce(entry)
            except MalformedRecordError as e:
                logger.warning("Skipping malformed annotation record: %s", e)
                skipped += 1
                continue
            loaded[record.id] = record

        self._records = loaded
        logger.debug("Loaded %d annotation records (%d skipped)", len(loaded), skipped)
        result = self.list()
        self.changed.emit(StoreChange(ChangeType.INIT, result))
        return result

    def upsert_from_editor(self, editor) -> Optional[AnnotationRecord]:
        """
        Create or update the record backing ``editor``.

        A new id gets a fresh record with an empty comment thread. A known id
        only has its editor params replaced.

        Returns:
            The stored record, or None for editors that cannot be converted
        """
        params = self.converter.convert(editor)
        if params is None:
            return None

        existing = self._records.get(params.id)
        if existing is None:
            record = AnnotationRecord(
                id=params.id,
                editor_params=params,
                comments=[],
                creator=Creator(self.creator_name),
                create_time=self._clock()
            )
            self._records[record.id] = record
            self.changed.emit(StoreChange(ChangeType.ADD, record))
            return record

        if params.page_index != existing.page_index:
            logger.debug("Ignoring page move of %s from %d to %d",
                         params.id, existing.page_index, params.page_index)
            params.page_index = existing.page_index
        record = replace(existing, editor_params=params)
        self._records[record.id] = record
        self.changed.emit(StoreChange(ChangeType.EDIT, record))
        return record

    def remove_from_editor(self, editor) -> Optional[AnnotationRecord]:
        """
        Delete the record backing ``editor``.

        Returns:
            The removed record, or None if nothing was removed
        """
        params = self.converter.convert(editor)
        if params is None:
            return None

        record = self._records.pop(params.id, None)
        if record is None:
            logger.debug("Delete for unknown annotation %s", params.id)
            return None
        self.changed.emit(StoreChange(ChangeType.DELETE, record))
        return record

    def add_comment(self, annotation_id: str, value: str,
                    creator: Optional[str] = None) -> Optional[AnnotationRecord]:
        """
        Append a comment to a record's thread.

        Returns:
            The updated record, or None if the id is unknown
        """
        existing = self._records.get(annotation_id)
        if existing is None:
            logger.debug("Comment for unknown annotation %s", annotation_id)
            return None

        comment = Comment(
            value=value,
            creator=Creator(creator or self.creator_name),
            create_time=self._clock()
        )
        record = replace(existing, comments=existing.comments + [comment])
        self._records[annotation_id] = record
        self.changed.emit(StoreChange(ChangeType.EDIT, record))
        return record

    def _coerce(self, entry) -> AnnotationRecord:
        if isinstance(entry, AnnotationRecord):
            record = copy.deepcopy(entry)
            record.editor_params.id = record.id
            return record
        return AnnotationRecord.from_dict(entry)
