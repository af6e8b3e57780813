"""
Core business logic for Marginalia.
"""
from .annotations import AnnotationManager, AnnotationRecord, RecordStore
from .document import DocumentInfo, announce_document, open_document
from .events import EventBus, Subscription

__all__ = [
    "AnnotationManager",
    "AnnotationRecord",
    "RecordStore",
    "DocumentInfo",
    "announce_document",
    "open_document",
    "EventBus",
    "Subscription",
]
