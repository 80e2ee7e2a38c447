"""Notification port — abstract interface for user-facing toasts.

Core modules depend on this protocol, never on a specific messaging provider.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol


class ToastLevel(Enum):
    SUCCESS = "success"
    INFO = "info"
    ERROR = "error"


@dataclass
class Toast:
    level: ToastLevel
    title: str
    message: str = ""


class NotificationPort(Protocol):
    """Abstract notification interface used by core modules."""

    async def send_toast(self, toast: Toast) -> None: ...
