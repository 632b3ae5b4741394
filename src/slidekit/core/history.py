"""Snapshot-based undo/redo history.

Every document edit goes through ``History.commit``; the snapshot taken just
before the edit is what ``undo`` brings back.
"""

import logging
from typing import Callable, Optional
from pydantic import BaseModel, ValidationError

logger = logging.getLogger("SlideKit.core.history")

HISTORY_LIMIT = 80


class Snapshot(BaseModel):
    """Document + view state at one point in time.

    The document is held as JSON so a snapshot never shares mutable
    structure with the live document.
    """
    description: str = ""
    document_json: str
    active_slide_id: Optional[str] = None
    selected_element_id: Optional[str] = None


class History:
    """Bounded undo stack plus redo stack over caller-provided capture/restore hooks."""

    def __init__(self, capture: Callable[[str], Snapshot],
                 restore: Callable[[Snapshot], None],
                 limit: int = HISTORY_LIMIT):
        if limit < 1:
            raise ValueError("history limit must be at least 1")
        self._capture = capture
        self._restore = restore
        self.limit = limit
        self.past: list[Snapshot] = []
        self.future: list[Snapshot] = []

    def can_undo(self) -> bool:
        return bool(self.past)

    def can_redo(self) -> bool:
        return bool(self.future)

    def commit(self, mutator: Callable[[], None], description: str = "") -> None:
        """Record the current state, then apply ``mutator``.

        Any commit invalidates the redo stack. If the mutator raises, nothing
        is recorded and the exception propagates.
        """
        snap = self._capture(description)
        mutator()
        self.past.append(snap)
        if len(self.past) > self.limit:
            self.past = self.past[-self.limit:]
        self.future = []
        logger.debug(f"commit '{description}' (past={len(self.past)})")

    def undo(self) -> Optional[str]:
        """Step back one edit. Returns its description, or None if there was nothing to undo."""
        if not self.past:
            return None
        previous = self.past[-1]
        current = self._capture(previous.description)
        if not self._apply(previous):
            return None
        self.past = self.past[:-1]
        self.future = [current] + self.future
        logger.debug(f"undo '{previous.description}'")
        return previous.description

    def redo(self) -> Optional[str]:
        """Re-apply the most recently undone edit. Returns its description, or None."""
        if not self.future:
            return None
        nxt = self.future[0]
        current = self._capture(nxt.description)
        if not self._apply(nxt):
            return None
        self.future = self.future[1:]
        self.past = self.past + [current]
        logger.debug(f"redo '{nxt.description}'")
        return nxt.description

    def clear(self) -> None:
        self.past = []
        self.future = []

    def _apply(self, snap: Snapshot) -> bool:
        try:
            self._restore(snap)
        except ValidationError as e:
            logger.warning(f"Corrupt history snapshot, clearing history: {e}")
            self.clear()
            return False
        return True
