"""
Document identity for annotation storage.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Union

import fitz

from .annotations.persistence import storage_key_for_path
from .events import DOCUMENT_LOADED, DOCUMENT_PAGE_COUNT_KNOWN, EventBus


@dataclass
class DocumentInfo:
    """What the annotation layer needs to know about an open PDF."""
    path: str
    storage_key: str
    page_count: int
    title: str = ""


def document_info(doc: fitz.Document) -> DocumentInfo:
    """Describe an already opened document."""
    metadata = doc.metadata or {}
    return DocumentInfo(
        path=doc.name,
        storage_key=storage_key_for_path(doc.name),
        page_count=doc.page_count,
        title=metadata.get('title') or ""
    )


def open_document(path: Union[str, Path]) -> DocumentInfo:
    """
    Open a PDF just long enough to read its identity.

    Args:
        path: Path to the PDF file

    Returns:
        DocumentInfo for the file
    """
    doc = fitz.open(str(path))
    try:
        return document_info(doc)
    finally:
        doc.close()


def announce_document(bus: EventBus, info: DocumentInfo) -> None:
    """Tell the views how many pages there are, then that the document is ready."""
    bus.dispatch(DOCUMENT_PAGE_COUNT_KNOWN, {'numPages': info.page_count})
    bus.dispatch(DOCUMENT_LOADED, {})
