# portal/results.py

"""Uniform outcome type returned by every portal service.

A service call either succeeds with a value or fails with an ``ErrorKind``
and a human readable message. Failed results are falsy, so callers that
only need "did it work" can keep writing ``if not result: ...``.

Usage:
    result = petitions.get_by_id(petition_id)
    if not result:
        if result.error is ErrorKind.NOT_FOUND:
            ...
    petition = result.value
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class ErrorKind(Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    TRANSPORT = "transport"
    UNAUTHENTICATED = "unauthenticated"


@dataclass(frozen=True)
class Result:
    value: Any = None
    error: Optional[ErrorKind] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None

    def __bool__(self):
        return self.ok

    @classmethod
    def success(cls, value=None):
        return cls(value=value)

    @classmethod
    def failure(cls, error: ErrorKind, message: str):
        return cls(error=error, message=message)

    def to_error_dict(self) -> dict:
        return {"error": self.error.value, "message": self.message}
