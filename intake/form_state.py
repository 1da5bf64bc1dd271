"""
Mutable form state for one browser session, plus the in-process store that keeps it
between requests so a failed submission can be corrected without re-entering data.
"""

import time
import threading
import logging
from collections import OrderedDict
from typing import Callable, Dict, Iterable, List, Mapping, Optional

from intake.schema import (
    Attachment,
    FormData,
    IMAGE_FIELDS,
    MAX_IMAGES,
    TEXT_FIELDS,
)

logger = logging.getLogger(__name__)

# Per-process limits for kept form states
MAX_FORMS = 100
IDLE_SECONDS = 30 * 60


class FormState:
    """Field values, attachments and the error mapping shown next to each field."""

    def __init__(self, data: Optional[FormData] = None):
        self.data = data or FormData()
        self.errors: Dict[str, str] = {}
        self.form_error: Optional[str] = None
        self.submitting = False
        self._submit_lock = threading.Lock()

    def begin_submit(self) -> bool:
        """Mark a submission as active; False if one is already running."""
        with self._submit_lock:
            if self.submitting:
                return False
            self.submitting = True
            return True

    def end_submit(self) -> None:
        with self._submit_lock:
            self.submitting = False

    def set_field(self, name: str, value: str) -> None:
        """Update a scalar field; its error is cleared only when the value changes."""
        if name not in TEXT_FIELDS:
            raise KeyError(name)
        if self.data.get(name) == value:
            return
        self.data.set(name, value)
        self.errors.pop(name, None)

    def update_fields(self, values: Mapping[str, str]) -> None:
        """Apply every known scalar field present in values (e.g. request.form)."""
        for name in TEXT_FIELDS:
            if name in values:
                self.set_field(name, values[name])

    def attachments(self, name: str) -> list:
        if name not in IMAGE_FIELDS:
            raise KeyError(name)
        return self.data.get(name)

    def add_attachments(self, name: str, new_files: Iterable[Attachment]) -> None:
        """
        Append attachments to a sequence, truncating silently to MAX_IMAGES.
        The first MAX_IMAGES keep their original order.
        """
        new_files = list(new_files)
        if not new_files:
            return
        combined = (list(self.attachments(name)) + new_files)[:MAX_IMAGES]
        if len(combined) < len(self.attachments(name)) + len(new_files):
            logger.info(f"⚠️ {name}: limited to {MAX_IMAGES} images")
        self.data.set(name, combined)
        self.errors.pop(name, None)

    def remove_attachment(self, name: str, index: int) -> None:
        files = self.attachments(name)
        if not 0 <= index < len(files):
            return
        self.data.set(name, [f for i, f in enumerate(files) if i != index])

    def can_add(self, name: str) -> bool:
        return len(self.attachments(name)) < MAX_IMAGES

    def snapshot(self) -> FormData:
        """Independent copy of the data for one submission."""
        return self.data.model_copy(deep=True)


class FormSessionStore:
    """
    Thread-safe map from a session's form id to its FormState.

    Entries untouched for idle_seconds are evicted, and beyond max_forms the least
    recently used entry goes first. A form with an active submission is never
    evicted. on_evict(form_id) is called outside the lock for every evicted form.
    """

    def __init__(
        self,
        max_forms: int = MAX_FORMS,
        idle_seconds: float = IDLE_SECONDS,
        on_evict: Optional[Callable[[str], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_forms = max_forms
        self.idle_seconds = idle_seconds
        self.on_evict = on_evict
        self._clock = clock
        self._states: "OrderedDict[str, FormState]" = OrderedDict()
        self._last_seen: Dict[str, float] = {}
        self._lock = threading.Lock()

    def get(self, form_id: str) -> Optional[FormState]:
        """Return the session's state without creating one."""
        with self._lock:
            state = self._states.get(form_id)
            if state is not None:
                self._touch(form_id)
            evicted = self._evict_locked()
        self._notify(evicted)
        return state

    def get_or_create(self, form_id: str) -> FormState:
        with self._lock:
            state = self._states.get(form_id)
            if state is None:
                state = FormState()
                self._states[form_id] = state
            self._touch(form_id)
            evicted = self._evict_locked()
        self._notify(evicted)
        return state

    def discard(self, form_id: str) -> None:
        with self._lock:
            self._states.pop(form_id, None)
            self._last_seen.pop(form_id, None)

    def evict_idle(self) -> List[str]:
        """Evict idle and excess forms now; returns the evicted form ids."""
        with self._lock:
            evicted = self._evict_locked()
        self._notify(evicted)
        return evicted

    def _touch(self, form_id: str) -> None:
        self._states.move_to_end(form_id)
        self._last_seen[form_id] = self._clock()

    def _evict_locked(self) -> List[str]:
        now = self._clock()
        evicted = []
        newest = next(reversed(self._states), None)
        # oldest first; the most recently touched entry is last
        for form_id, state in list(self._states.items()):
            idle = now - self._last_seen[form_id] > self.idle_seconds
            over = len(self._states) > self.max_forms and form_id != newest
            if not (idle or over):
                break
            if state.submitting:
                continue
            del self._states[form_id]
            del self._last_seen[form_id]
            evicted.append(form_id)
        return evicted

    def _notify(self, evicted: List[str]) -> None:
        if not evicted:
            return
        logger.info(f"Evicted {len(evicted)} idle form(s)")
        if self.on_evict:
            for form_id in evicted:
                self.on_evict(form_id)

    def __len__(self) -> int:
        return len(self._states)
