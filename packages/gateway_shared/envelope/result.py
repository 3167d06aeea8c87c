"""``Result[T]``: the return type of every component public operation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, Iterable, TypeVar

from packages.gateway_shared.errors import ErrorDetail

from .meta import EnvelopeMeta

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """A payload on success or at least one error on failure, never both."""

    metadata: EnvelopeMeta
    payload: T | None
    errors: list[ErrorDetail] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def error(self) -> ErrorDetail | None:
        """The first error, which decides the HTTP status at the edge."""
        return self.errors[0] if self.errors else None

    def unwrap(self) -> T:
        """Return the payload; ``ValueError`` on a failed or empty result."""
        if self.errors or self.payload is None:
            raise ValueError("unwrap() called on a failed or empty result")
        return self.payload


def success(*, meta: EnvelopeMeta, payload: T) -> Result[T]:
    return Result(metadata=meta, payload=payload)


def failure(*, meta: EnvelopeMeta, errors: Iterable[ErrorDetail]) -> Result[T]:
    """Build a failed result; ``ValueError`` when ``errors`` is empty."""
    collected = list(errors)
    if not collected:
        raise ValueError("failure() requires at least one error")
    return Result(metadata=meta, payload=None, errors=collected)
