"""
Preview references for selected images.

Each owner (a form sequence, e.g. "<form_id>:currentSituationImage") holds a set of
opaque tokens that map to image bytes served by /preview/<token>. When an owner's
attachment list changes, every token it held is released before new ones are acquired.
"""

import secrets
import threading
from typing import Dict, List, Optional, Sequence, Tuple

from intake.schema import Attachment


class PreviewRegistry:

    def __init__(self):
        self._previews: Dict[str, Tuple[str, bytes]] = {}
        self._owners: Dict[str, List[str]] = {}
        # attachments each owner's tokens were acquired for (kept alive so identity checks hold)
        self._held: Dict[str, List[Attachment]] = {}
        self._lock = threading.Lock()

    def sync(self, owner_key: str, attachments: Sequence[Attachment]) -> List[str]:
        """Return one token per attachment, in order. Reuses tokens if the list is unchanged."""
        with self._lock:
            if owner_key in self._owners and _same_items(self._held.get(owner_key, []), attachments):
                return list(self._owners[owner_key])

            self._release_locked(owner_key)
            if not attachments:
                return []
            tokens = []
            for attachment in attachments:
                token = secrets.token_urlsafe(16)
                self._previews[token] = (attachment.mimetype, attachment.data)
                tokens.append(token)
            self._owners[owner_key] = tokens
            self._held[owner_key] = list(attachments)
            return list(tokens)

    def get(self, token: str) -> Optional[Tuple[str, bytes]]:
        """Return (mimetype, bytes) or None if the token was released."""
        with self._lock:
            return self._previews.get(token)

    def release(self, owner_key: str) -> None:
        with self._lock:
            self._release_locked(owner_key)

    def release_prefix(self, prefix: str) -> None:
        """Release every owner whose key starts with prefix (e.g. a whole form)."""
        with self._lock:
            for owner_key in [key for key in self._owners if key.startswith(prefix)]:
                self._release_locked(owner_key)

    def _release_locked(self, owner_key: str) -> None:
        for token in self._owners.pop(owner_key, []):
            self._previews.pop(token, None)
        self._held.pop(owner_key, None)

    def __len__(self) -> int:
        return len(self._previews)


def _same_items(held: Sequence[Attachment], attachments: Sequence[Attachment]) -> bool:
    return len(held) == len(attachments) and all(a is b for a, b in zip(held, attachments))
