"""
Two-variant outcome type.

Every fallible engine operation (location detection, facility fetching) returns
`Ok(value)` or `Err(error)` instead of raising across component boundaries, so callers
always see the failure kind and decide how to degrade.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, NoReturn, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")
U = TypeVar("U")
F = TypeVar("F")


class UnwrapError(RuntimeError):
    """Raised by `Err.unwrap()`; the error payload is kept on `.error`."""

    def __init__(self, error: Any):
        super().__init__(f"Attempted to unwrap an error: {error!r}")
        self.error = error


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def map(self, fn: Callable[[T], U]) -> Ok[U]:
        return Ok(fn(self.value))

    def map_err(self, fn: Callable[[Any], Any]) -> Ok[T]:
        return self

    def flat_map(self, fn: Callable[[T], Result[U, Any]]) -> Result[U, Any]:
        return fn(self.value)

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value


@dataclass(frozen=True)
class Err(Generic[E]):
    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def map(self, fn: Callable[[Any], Any]) -> Err[E]:
        return self

    def map_err(self, fn: Callable[[E], F]) -> Err[F]:
        return Err(fn(self.error))

    def flat_map(self, fn: Callable[[Any], Any]) -> Err[E]:
        return self

    def unwrap(self) -> NoReturn:
        """Always raises `UnwrapError`; use `unwrap_or` where absence is expected."""
        raise UnwrapError(self.error)

    def unwrap_or(self, default: T) -> T:
        return default


Result = Union[Ok[T], Err[E]]
