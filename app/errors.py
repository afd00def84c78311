# app/errors.py
"""Failure taxonomy for a feed import.

Every failure that can end an import derives from `ImportFailure`, which
carries a stable `kind` string and a human readable message. The HTTP layer
renders these as ``{"kind": ..., "message": ...}``.
"""
from typing import Any, Dict, Optional


class ImportFailure(Exception):
    kind = "ImportFailure"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "message": self.message}


class ParseError(ImportFailure):
    """The document is not well-formed XML or has no listings container."""
    kind = "ParseError"


class MappingError(ImportFailure):
    """One listing cannot be turned into a row."""
    kind = "MappingError"

    def __init__(self, message: str, index: int, ref: Optional[str] = None):
        where = f"listing #{index}"
        if ref:
            where += f" (ref {ref})"
        super().__init__(f"{where}: {message}")
        self.index = index
        self.ref = ref


class StorageError(ImportFailure):
    kind = "StorageError"


class ImportTimeoutError(ImportFailure, TimeoutError):
    kind = "TimeoutError"
