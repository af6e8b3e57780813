"""
Identifier namespaces for annotation records.

Stable ids look like ``<prefix><n>`` and come from the editing layer's
counter. Virtual ids are minted here for annotations that do not have a
stable id yet.
"""
import uuid
from typing import Iterable, Optional

from marginalia.config import DEFAULT_STABLE_PREFIX

VIRTUAL_ID_PREFIX = "virtual-"


class IdentifierAllocator:
    """Classifies ids and tracks the stable id watermark."""

    def __init__(self, stable_prefix: str = DEFAULT_STABLE_PREFIX):
        if stable_prefix.startswith(VIRTUAL_ID_PREFIX):
            raise ValueError("Stable prefix must not overlap the virtual namespace")
        self.stable_prefix = stable_prefix
        self._next_stable = 0

    @property
    def next_stable(self) -> int:
        """Smallest stable counter value not yet seen this session."""
        return self._next_stable

    def is_virtual(self, annotation_id) -> bool:
        return str(annotation_id).startswith(VIRTUAL_ID_PREFIX)

    def new_virtual_id(self) -> str:
        return VIRTUAL_ID_PREFIX + str(uuid.uuid4())

    def stable_index(self, annotation_id) -> Optional[int]:
        """
        Get the counter value encoded in a stable id.

        Returns:
            The integer suffix, or None if the id is not a stable id
        """
        annotation_id = str(annotation_id)
        if not annotation_id.startswith(self.stable_prefix):
            return None
        suffix = annotation_id[len(self.stable_prefix):]
        if not suffix.isdigit():
            return None
        return int(suffix)

    def is_stable(self, annotation_id) -> bool:
        return self.stable_index(annotation_id) is not None

    def observe(self, ids: Iterable[str]) -> int:
        """
        Raise the watermark past every stable id in ``ids``.

        The watermark never goes down, so an id freed by a deletion is
        never handed out again in the same session.

        Returns:
            The new watermark
        """
        for annotation_id in ids:
            index = self.stable_index(annotation_id)
            if index is not None and index >= self._next_stable:
                self._next_stable = index + 1
        return self._next_stable
