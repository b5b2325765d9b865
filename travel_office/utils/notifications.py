from __future__ import annotations

from PySide6.QtCore import QObject, Signal


class Notifier(QObject):
    """
    User-facing notifications emitted by services (toasts in the shell).

    Signals:
        notified(message: str, level: str)   level is "success", "error" or "info"
    """

    notified = Signal(str, str)

    def success(self, message: str) -> None:
        self.notified.emit(message, "success")

    def error(self, message: str) -> None:
        self.notified.emit(message, "error")

    def info(self, message: str) -> None:
        self.notified.emit(message, "info")
