"""Error types and bridge error payload helpers."""

from __future__ import annotations

from typing import Dict, Optional


class ContactViewError(Exception):
    """Base exception type for contactview.

    Attributes
    ----------
    code
        Stable error identifier.
    message
        Human-readable error message.
    details
        Optional detail payload for debugging.
    """

    def __init__(self, code: str, message: str, details: Optional[object] = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details

    def to_result(self) -> Dict[str, object]:
        """Return a JSON-ready error payload.

        Returns
        -------
        dict
            JSON-ready error payload.
        """
        return error_result(self.code, self.message, self.details)


class EngineError(ContactViewError):
    """Errors raised by the contact map engine and its model helpers."""


class StructureError(ContactViewError):
    """Errors raised while reading coordinates from a structure file."""


class ExportError(ContactViewError):
    """Errors raised when encoding PNG or CSV exports."""


def error_result(code: str, message: str, details: Optional[object] = None) -> Dict[str, object]:
    """Build a bridge error payload.

    Parameters
    ----------
    code
        Stable error identifier.
    message
        Human-readable summary.
    details
        Optional detail payload for logging or debugging.

    Returns
    -------
    dict
        JSON-ready error payload.
    """

    return {"ok": False, "error": {"code": code, "message": message, "details": details}}
