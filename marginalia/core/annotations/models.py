"""
Data model for annotation records and their editor parameters.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Type

from marginalia.config import DEFAULT_CREATOR_NAME


class AnnotationMode(Enum):
    """Editing tool mode an annotation belongs to."""
    NONE = "none"
    HIGHLIGHT = "highlight"
    UNDERLINE = "underline"
    STRIKETHROUGH = "strikethrough"
    NOTE = "note"


class ChangeType(Enum):
    INIT = "init"
    ADD = "add"
    EDIT = "edit"
    DELETE = "delete"


class MalformedRecordError(ValueError):
    """Raised when a persisted entry cannot be turned into a record."""


@dataclass
class Box:
    """A sub-rectangle of a highlight, in page-relative units."""
    x: float
    y: float
    width: float
    height: float

    def to_dict(self) -> Dict[str, float]:
        return {'x': self.x, 'y': self.y, 'width': self.width, 'height': self.height}

    @staticmethod
    def from_dict(data) -> 'Box':
        if not isinstance(data, dict):
            raise TypeError(f"box must be an object, not {type(data).__name__}")
        return Box(
            x=data.get('x', 0.0),
            y=data.get('y', 0.0),
            width=data.get('width', 0.0),
            height=data.get('height', 0.0)
        )


@dataclass
class Creator:
    name: str = DEFAULT_CREATOR_NAME

    def to_dict(self) -> Dict[str, str]:
        return {'name': self.name}

    @staticmethod
    def from_dict(data) -> 'Creator':
        if not isinstance(data, dict):
            return Creator()
        return Creator(name=data.get('name') or DEFAULT_CREATOR_NAME)


@dataclass
class Comment:
    """A single entry of an annotation's comment thread."""
    value: str
    creator: Creator = field(default_factory=Creator)
    create_time: int = 0  # epoch millis

    def to_dict(self) -> Dict[str, Any]:
        return {
            'value': self.value,
            'creator': self.creator.to_dict(),
            'createTime': self.create_time
        }

    @staticmethod
    def from_dict(data) -> 'Comment':
        return Comment(
            value=data.get('value', ''),
            creator=Creator.from_dict(data.get('creator')),
            create_time=data.get('createTime', 0)
        )


# ==============================================================================
# Editor parameters
# ==============================================================================

# Variant name -> params class, filled in by @register_params
PARAMS_TYPES: Dict[str, Type['EditorParams']] = {}


def register_params(name: str) -> Callable[[Type['EditorParams']], Type['EditorParams']]:
    """Class decorator binding a params class to its variant name."""
    def decorator(cls):
        cls.name = name
        PARAMS_TYPES[name] = cls
        return cls
    return decorator


@dataclass
class EditorParams:
    """
    Serializable placement shared by every editor variant.

    Subclasses add their variant-specific fields and are looked up by
    ``name`` when loading persisted data.
    """
    id: str
    page_index: int  # 0-based page index
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    is_centered: bool = False

    name = "editor"

    @property
    def mode(self) -> AnnotationMode:
        return AnnotationMode.NONE

    def to_dict(self) -> Dict[str, Any]:
        """Convert params to dictionary for JSON serialization."""
        return {
            'id': self.id,
            'name': self.name,
            'pageIndex': self.page_index,
            'x': self.x,
            'y': self.y,
            'width': self.width,
            'height': self.height,
            'isCentered': self.is_centered
        }

    @classmethod
    def _common_kwargs(cls, data) -> Dict[str, Any]:
        return {
            'id': data.get('id'),
            'page_index': int(data['pageIndex']),
            'x': data.get('x', 0.0),
            'y': data.get('y', 0.0),
            'width': data.get('width', 0.0),
            'height': data.get('height', 0.0),
            'is_centered': bool(data.get('isCentered', False))
        }

    @classmethod
    def from_fields(cls, data) -> 'EditorParams':
        return cls(**cls._common_kwargs(data))

    @staticmethod
    def from_dict(data) -> 'EditorParams':
        """Create the params variant named by ``data['name']``."""
        if not isinstance(data, dict):
            raise MalformedRecordError("editorParams must be an object")
        params_cls = PARAMS_TYPES.get(data.get('name'))
        if params_cls is None:
            raise MalformedRecordError(f"Unknown editor variant: {data.get('name')!r}")
        try:
            return params_cls.from_fields(data)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise MalformedRecordError(f"Invalid {params_cls.name} params: {e}") from e


@register_params("highlightEditor")
@dataclass
class HighlightParams(EditorParams):
    text: str = ""
    color: Optional[str] = None
    opacity: float = 1.0
    thickness: float = 0.0
    highlight_mode: AnnotationMode = AnnotationMode.HIGHLIGHT
    method_of_creation: str = ""
    boxes: List[Box] = field(default_factory=list)

    @property
    def mode(self) -> AnnotationMode:
        return self.highlight_mode

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            'text': self.text,
            'color': self.color,
            'opacity': self.opacity,
            'thickness': self.thickness,
            'mode': self.highlight_mode.value,
            'methodOfCreation': self.method_of_creation,
            'boxes': [box.to_dict() for box in self.boxes]
        })
        return data

    @classmethod
    def from_fields(cls, data) -> 'HighlightParams':
        return cls(
            text=data.get('text', ''),
            color=data.get('color'),
            opacity=data.get('opacity', 1.0),
            thickness=data.get('thickness', 0.0),
            highlight_mode=AnnotationMode(data.get('mode', AnnotationMode.HIGHLIGHT.value)),
            method_of_creation=data.get('methodOfCreation', ''),
            boxes=[Box.from_dict(b) for b in data.get('boxes') or []],
            **cls._common_kwargs(data)
        )


@register_params("noteEditor")
@dataclass
class NoteParams(EditorParams):
    content: str = ""

    @property
    def mode(self) -> AnnotationMode:
        return AnnotationMode.NOTE

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data['content'] = self.content
        return data

    @classmethod
    def from_fields(cls, data) -> 'NoteParams':
        return cls(content=data.get('content', ''), **cls._common_kwargs(data))


# ==============================================================================
# Records
# ==============================================================================


@dataclass
class AnnotationRecord:
    """Canonical state of one annotation plus its comment thread."""
    id: str
    editor_params: EditorParams
    comments: List[Comment] = field(default_factory=list)
    creator: Creator = field(default_factory=Creator)
    create_time: int = 0  # epoch millis
    hidden: bool = False

    @property
    def page_index(self) -> int:
        return self.editor_params.page_index

    def to_dict(self) -> Dict[str, Any]:
        """Convert record to dictionary for JSON serialization."""
        data = {
            'id': self.id,
            'editorParams': self.editor_params.to_dict(),
            'comments': [c.to_dict() for c in self.comments],
            'creator': self.creator.to_dict(),
            'createTime': self.create_time
        }
        if self.hidden:
            data['hidden'] = True
        return data

    @staticmethod
    def from_dict(data) -> 'AnnotationRecord':
        """
        Create a record from its persisted form.

        Raises:
            MalformedRecordError: if the entry has no id or its params
                cannot be read.
        """
        if not isinstance(data, dict):
            raise MalformedRecordError("Record must be an object")

        raw_params = data.get('editorParams')
        record_id = data.get('id')
        if not record_id and isinstance(raw_params, dict):
            record_id = raw_params.get('id')
        if not record_id or not isinstance(record_id, str):
            raise MalformedRecordError("Record has no id")

        params = EditorParams.from_dict(raw_params)
        # Record key and embedded editor id are kept in sync
        params.id = record_id

        try:
            comments = [Comment.from_dict(c) for c in data.get('comments') or []]
        except (AttributeError, TypeError) as e:
            raise MalformedRecordError(f"Invalid comments: {e}") from e

        hidden = data.get('hidden')
        if hidden is None:
            hidden = raw_params.get('hidden', False)

        return AnnotationRecord(
            id=record_id,
            editor_params=params,
            comments=comments,
            creator=Creator.from_dict(data.get('creator')),
            create_time=data.get('createTime', 0),
            hidden=bool(hidden)
        )
