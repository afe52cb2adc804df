"""Step outcomes for traversals and the suggestion fallback chain.

Every search step answers with exactly one of:

* :class:`Found` -- the step produced a value; callers stop searching.
* :class:`NotFound` -- nothing here; callers move on to the next step.
* :class:`Cancelled` -- the query's cancellation signal tripped; callers
  stop immediately and hand the outcome upwards unchanged.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Found(Generic[T]):
    value: T


@dataclass(frozen=True)
class NotFound:
    pass


@dataclass(frozen=True)
class Cancelled:
    reason: str = "cancelled"


Outcome = Union[Found[T], NotFound, Cancelled]

NOT_FOUND = NotFound()


def is_found(outcome: object) -> bool:
    return isinstance(outcome, Found)


def is_cancelled(outcome: object) -> bool:
    return isinstance(outcome, Cancelled)
