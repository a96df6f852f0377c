"""Bounded side-channel buffers fed by window event callbacks."""

from __future__ import annotations

import asyncio
import re
import time
from collections import deque
from dataclasses import asdict, dataclass, replace
from typing import Any, Deque, Dict, Generic, Iterable, List, Optional, TypeVar

MAX_EVENT_HISTORY = 100

T = TypeVar("T")


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class DialogRecord:
    type: str
    message: str
    default_value: str = ""
    timestamp: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ConsoleRecord:
    type: str
    text: str
    timestamp: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class NetworkRecord:
    url: str
    method: str
    status: Optional[int] = None
    timestamp: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class EventLog(Generic[T]):
    """Append-and-evict ring buffer of immutable records."""

    def __init__(self, capacity: int = MAX_EVENT_HISTORY) -> None:
        self._items: Deque[T] = deque(maxlen=capacity)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(list(self._items))

    @property
    def capacity(self) -> int:
        return self._items.maxlen or 0

    def append(self, item: T) -> None:
        self._items.append(item)

    def tail(self, limit: Optional[int] = None) -> List[T]:
        items = list(self._items)
        if limit is None:
            return items
        if limit <= 0:
            return []
        return items[-limit:]

    def clear(self) -> None:
        self._items.clear()


class NetworkLog(EventLog[NetworkRecord]):
    def record_request(self, url: str, method: str) -> None:
        self.append(NetworkRecord(url=url, method=method, timestamp=_now_ms()))

    def record_response(self, url: str, status: int) -> bool:
        """Annotate the first matching request that has no status yet."""
        for index, entry in enumerate(self._items):
            if entry.url == url and entry.status is None:
                self._items[index] = replace(entry, status=status)
                return True
        return False

    def filtered(self, limit: int, url_pattern: Optional[str] = None) -> List[NetworkRecord]:
        entries: Iterable[NetworkRecord] = self._items
        if url_pattern:
            pattern = re.compile(url_pattern)
            entries = [entry for entry in entries if pattern.search(entry.url)]
        entries = list(entries)
        return entries[-limit:] if limit > 0 else []


class ConsoleLog(EventLog[ConsoleRecord]):
    def record(self, type_: str, text: str) -> None:
        self.append(ConsoleRecord(type=type_, text=text, timestamp=_now_ms()))

    def filtered(self, limit: int, type_: Optional[str] = None) -> List[ConsoleRecord]:
        entries = [entry for entry in self._items if not type_ or entry.type == type_]
        return entries[-limit:] if limit > 0 else []


class DialogQueue:
    """
    Records every dialog and keeps the live handles that still need an answer.

    A dialog is answered either by a caller already waiting in
    ``next_dialog`` or, later, by the first caller to ask for one.
    """

    def __init__(self, capacity: int = MAX_EVENT_HISTORY) -> None:
        self.history: EventLog[DialogRecord] = EventLog(capacity)
        self._live: Deque[Any] = deque()
        self._waiters: Deque[asyncio.Future] = deque()

    def push(self, dialog: Any) -> DialogRecord:
        record = DialogRecord(
            type=_safe_call(dialog, "type"),
            message=_safe_call(dialog, "message"),
            default_value=_safe_call(dialog, "default_value"),
            timestamp=_now_ms(),
        )
        self.history.append(record)
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_result(dialog)
                return record
        self._live.append(dialog)
        return record

    def pending(self) -> List[DialogRecord]:
        return self.history.tail()

    def has_live(self) -> bool:
        return bool(self._live)

    async def next_dialog(self, timeout_s: float) -> Any:
        """Return the oldest unanswered dialog, waiting up to ``timeout_s`` for one."""
        if self._live:
            return self._live.popleft()
        waiter = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        try:
            return await asyncio.wait_for(waiter, timeout=timeout_s)
        finally:
            if waiter in self._waiters:
                self._waiters.remove(waiter)

    def clear_history(self) -> None:
        self.history.clear()

    def clear(self) -> None:
        self.history.clear()
        self._live.clear()
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.cancel()


def _safe_call(obj: Any, name: str) -> str:
    value = getattr(obj, name, "")
    if callable(value):
        try:
            value = value()
        except Exception:
            return ""
    return "" if value is None else str(value)
