"""Merge historical pages and live pushes into one duplicate-free log."""
from __future__ import annotations
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Set

from .data import item_id, normalize_items

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notice:
    """Inline, non-item entry such as a failed-send warning."""
    message: str
    position: int


class AppendLog:
    """Ordered item log for one active context (e.g. one chat room).

    Historical loads and live pushes may arrive in any order and overlap;
    each item id is appended at most once until the context is reset.

    Usage:
        log = AppendLog(context=room_id, accept=lambda item: item["data"].get("room") == room_id)
        log.load_history(data.list("messages", filter={"room": room_id}))
        channel.subscribe("messages", lambda item, kind: log.push(item))
    """

    def __init__(
        self,
        context: Optional[str] = None,
        accept: Optional[Callable[[Dict[str, Any]], bool]] = None,
    ):
        self.context = context
        self.accept = accept
        self._seen: Set[str] = set()
        self._entries: List[Dict[str, Any]] = []
        self._notices: List[Notice] = []
        # Live pushes arrive on the Socket.IO thread
        self._lock = threading.Lock()

    @property
    def entries(self) -> List[Dict[str, Any]]:
        with self._lock:
            return list(self._entries)

    @property
    def notices(self) -> List[Notice]:
        with self._lock:
            return list(self._notices)

    def __len__(self) -> int:
        return len(self._entries)

    def seen(self, item: Dict[str, Any]) -> bool:
        return item_id(item) in self._seen

    def push(self, item: Dict[str, Any]) -> bool:
        """Append one item unless already seen or rejected by ``accept``.

        Safe to call from several threads; each id is appended at most once.

        Returns:
            True if the item was appended
        """
        with self._lock:
            return self._append(item)

    def _append(self, item: Dict[str, Any]) -> bool:
        key = item_id(item)
        if key is None:
            logger.warning(f"[append-log] Ignoring item without id in context {self.context!r}")
            return False
        if key in self._seen:
            return False
        if self.accept is not None and not self.accept(item):
            return False
        self._seen.add(key)
        self._entries.append(item)
        return True

    def load_history(self, page: Any) -> List[Dict[str, Any]]:
        """Seed from a newest-first page (bare list or ``{"items": [...]}``).

        Returns:
            Items actually appended, oldest first
        """
        with self._lock:
            return self._load(page)

    def _load(self, page: Any) -> List[Dict[str, Any]]:
        return [item for item in reversed(normalize_items(page)) if self._append(item)]

    def note(self, message: str) -> Notice:
        """Record an inline notice after the current last entry."""
        with self._lock:
            notice = Notice(message=message, position=len(self._entries))
            self._notices.append(notice)
        return notice

    def reset(
        self,
        context: Optional[str] = None,
        accept: Optional[Callable[[Dict[str, Any]], bool]] = None,
    ) -> None:
        """Discard everything and switch to ``context``."""
        with self._lock:
            self._clear(context, accept)

    def _clear(self, context: Optional[str], accept: Optional[Callable[[Dict[str, Any]], bool]]) -> None:
        self.context = context
        self.accept = accept
        self._seen = set()
        self._entries = []
        self._notices = []

    def reload(self, fetch: Callable[[], Any]) -> List[Dict[str, Any]]:
        """Reset within the same context and re-seed from ``fetch()``.

        Used to recover events missed while the live connection was down.
        If ``fetch`` raises, the current log is left untouched.
        """
        page = fetch()
        with self._lock:
            self._clear(self.context, self.accept)
            return self._load(page)
