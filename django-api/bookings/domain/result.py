"""Tagged results returned by every service operation."""

from dataclasses import dataclass
from typing import Generic, TypeVar

from bookings.domain.errors import DomainError

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def is_ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    error: DomainError

    @property
    def is_ok(self) -> bool:
        return False


Result = Ok[T] | Err
