"""
Annotation system for PDF documents.
"""
from .converter import ParamsConverter
from .display import DisplayReconciler, DisplayState
from .identifiers import IdentifierAllocator
from .manager import AnnotationManager
from .models import (
    AnnotationMode,
    AnnotationRecord,
    Box,
    ChangeType,
    Comment,
    Creator,
    EditorParams,
    HighlightParams,
    MalformedRecordError,
    NoteParams,
)
from .persistence import (
    AnnotationPersistence,
    JsonFileStorage,
    MemoryStorage,
    PersistenceAdapter,
    storage_key_for_path,
)
from .store import RecordStore, StoreChange

__all__ = [
    'AnnotationManager',
    'AnnotationMode',
    'AnnotationPersistence',
    'AnnotationRecord',
    'Box',
    'ChangeType',
    'Comment',
    'Creator',
    'DisplayReconciler',
    'DisplayState',
    'EditorParams',
    'HighlightParams',
    'IdentifierAllocator',
    'JsonFileStorage',
    'MalformedRecordError',
    'MemoryStorage',
    'NoteParams',
    'ParamsConverter',
    'PersistenceAdapter',
    'RecordStore',
    'StoreChange',
    'storage_key_for_path'
]
