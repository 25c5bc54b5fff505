"""Step outcomes that separate fatal failures from degraded success."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class OutcomeStatus(str, Enum):
    OK = "ok"
    DEGRADED = "degraded"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class Outcome(Generic[T]):
    """Result of one step; the caller decides whether to tolerate or abort.

    ``DEGRADED`` means the step produced a usable value but something
    optional around it went wrong. ``FAILED`` means no usable value exists.
    """

    status: OutcomeStatus
    value: T | None = None
    reason: str | None = None
    error: BaseException | None = None

    @classmethod
    def ok(cls, value: T | None = None) -> "Outcome[T]":
        return cls(OutcomeStatus.OK, value=value)

    @classmethod
    def degraded(cls, reason: str, value: T | None = None, error: BaseException | None = None) -> "Outcome[T]":
        return cls(OutcomeStatus.DEGRADED, value=value, reason=reason, error=error)

    @classmethod
    def failed(cls, reason: str, error: BaseException | None = None) -> "Outcome[T]":
        return cls(OutcomeStatus.FAILED, reason=reason, error=error)

    @property
    def is_ok(self) -> bool:
        return self.status is OutcomeStatus.OK

    @property
    def is_failed(self) -> bool:
        return self.status is OutcomeStatus.FAILED

    @property
    def usable(self) -> bool:
        """True unless the step failed outright."""
        return self.status is not OutcomeStatus.FAILED


__all__ = ["Outcome", "OutcomeStatus"]
