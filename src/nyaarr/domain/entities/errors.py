"""Domain errors raised by collaborator adapters."""

from __future__ import annotations


class DebridError(Exception):
    """A debrid provider call failed (HTTP error, missing data, timeout).

    ``step`` names the conversion step that failed, e.g. ``"add_magnet"``.
    """

    def __init__(self, step: str, message: str = "") -> None:
        self.step = step
        self.message = message
        super().__init__(f"{step}: {message}" if message else step)
