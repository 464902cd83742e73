from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Envelope(Generic[T]):
    """Uniform outcome of every ApiClient call.

    ``status`` is the HTTP status code, or 0 when no response was received.
    """

    success: bool
    data: Optional[T]
    status: int


@dataclass(frozen=True)
class Success:
    status: int
    data: Any = None


@dataclass(frozen=True)
class TransportFailure:
    error: str
    status: int = 0


@dataclass(frozen=True)
class BackendFailure:
    status: int
    body: Any = None


@dataclass(frozen=True)
class DecodeFailure:
    status: int
    reason: str


@dataclass(frozen=True)
class StorageFailure:
    status: int
    reason: str


Result = Union[Success, TransportFailure, BackendFailure, DecodeFailure, StorageFailure]


def to_envelope(result: Result, include_error_body: bool = False) -> Envelope[Any]:
    if isinstance(result, Success):
        return Envelope(success=True, data=result.data, status=result.status)
    if isinstance(result, BackendFailure):
        data = result.body if include_error_body else None
        return Envelope(success=False, data=data, status=result.status)
    return Envelope(success=False, data=None, status=result.status)
