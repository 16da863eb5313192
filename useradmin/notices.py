"""Transient user-visible notices shown on the next rendered page."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import List

logger = logging.getLogger("useradmin.notices")

_LOG_LEVELS = {
    "success": logging.INFO,
    "info": logging.INFO,
    "error": logging.WARNING,
}


@dataclass(frozen=True)
class Notice:
    message: str
    category: str = "info"


class NoticeBoard:
    """Collect notices until the UI drains them."""

    def __init__(self) -> None:
        self._notices: List[Notice] = []
        self._lock = threading.Lock()

    def push(self, message: str, *, category: str = "info") -> Notice:
        if category not in _LOG_LEVELS:
            raise ValueError(f"Unknown notice category '{category}'")
        notice = Notice(message=message, category=category)
        logger.log(_LOG_LEVELS[category], "%s", message)
        with self._lock:
            self._notices.append(notice)
        return notice

    def success(self, message: str) -> Notice:
        return self.push(message, category="success")

    def error(self, message: str) -> Notice:
        return self.push(message, category="error")

    def info(self, message: str) -> Notice:
        return self.push(message, category="info")

    def peek(self) -> List[Notice]:
        with self._lock:
            return list(self._notices)

    def drain(self) -> List[Notice]:
        with self._lock:
            notices, self._notices = self._notices, []
        return notices

    def __len__(self) -> int:
        with self._lock:
            return len(self._notices)


__all__ = ["Notice", "NoticeBoard"]
