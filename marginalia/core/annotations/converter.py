"""
Conversion of live editor objects into serializable editor params.
"""
import logging
from typing import Any, Callable, Dict, List, Optional

from .models import AnnotationMode, Box, EditorParams, HighlightParams, NoteParams

logger = logging.getLogger(__name__)

Converter = Callable[[Any], EditorParams]


def _common_fields(editor) -> Dict[str, Any]:
    """Placement fields every editor variant carries."""
    initial_options = getattr(editor, 'initial_options', None) or {}
    return {
        'id': editor.id,
        'page_index': int(editor.page_index),
        'x': editor.x,
        'y': editor.y,
        'width': editor.width,
        'height': editor.height,
        'is_centered': bool(initial_options.get('is_centered', False))
    }


def clone_boxes(boxes) -> List[Box]:
    """Copy a sequence of box-like objects into fresh Box instances."""
    if not boxes:
        return []
    return [Box(x=b.x, y=b.y, width=b.width, height=b.height) for b in boxes]


def from_highlight(editor) -> HighlightParams:
    return HighlightParams(
        text=editor.get_text(),
        color=editor.color,
        opacity=editor.opacity,
        thickness=editor.thickness,
        highlight_mode=AnnotationMode(editor.get_mode()),
        method_of_creation=editor.get_method_of_creation(),
        boxes=clone_boxes(editor.get_boxes()),
        **_common_fields(editor)
    )


def from_note(editor) -> NoteParams:
    return NoteParams(content=editor.content or "", **_common_fields(editor))


class ParamsConverter:
    """
    Maps editor variants to their params converters.

    Adding an annotation kind means registering one converter here and one
    params class in ``models``; nothing else changes.
    """

    def __init__(self):
        self._converters: Dict[str, Converter] = {
            HighlightParams.name: from_highlight,
            NoteParams.name: from_note,
        }

    def register(self, name: str, converter: Converter) -> None:
        self._converters[name] = converter

    def supports(self, name: str) -> bool:
        return name in self._converters

    def convert(self, editor) -> Optional[EditorParams]:
        """
        Convert an editor into params.

        Args:
            editor: Live editor object

        Returns:
            A detached params object, or None if the variant is unknown or
            the editor could not be read
        """
        name = getattr(editor, 'name', None)
        converter = self._converters.get(name)
        if converter is None:
            logger.debug("No converter for editor variant %r", name)
            return None
        try:
            return converter(editor)
        except (AttributeError, TypeError, ValueError) as e:
            logger.debug("Could not convert %s editor: %s", name, e)
            return None
