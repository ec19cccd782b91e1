"""Result kinds for pipeline steps.

``Required`` steps either produce a value or carry the error that aborts the
request. ``BestEffort`` steps always produce a value; when the real value
could not be obtained they carry a substitute and the reason it was used.
"""
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from posterlink.errors import PosterLinkError

T = TypeVar("T")


@dataclass(frozen=True)
class Required(Generic[T]):
    value: Optional[T] = None
    error: Optional[PosterLinkError] = None

    @classmethod
    def ok(cls, value: T) -> "Required[T]":
        return cls(value=value)

    @classmethod
    def fail(cls, error: PosterLinkError) -> "Required[T]":
        return cls(error=error)

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value


@dataclass(frozen=True)
class BestEffort(Generic[T]):
    value: T
    degraded: bool = False
    reason: str = ""

    @classmethod
    def ok(cls, value: T) -> "BestEffort[T]":
        return cls(value=value)

    @classmethod
    def substitute(cls, default: T, reason: str) -> "BestEffort[T]":
        return cls(value=default, degraded=True, reason=reason)
