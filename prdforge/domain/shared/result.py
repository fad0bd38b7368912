"""Result monad for explicit error handling.

Every step of the generation pipeline that can fail for an expected reason
(unreadable file, malformed PRD, model output that will not parse, a store
write that is refused) returns ``Ok(value)`` or ``Err(message)`` instead of
raising. Callers branch on the type and keep the error text, which is what
ends up in ``Failed(error)`` for the host UI.

Example usage:
    >>> def parse_complexity(raw: str) -> Result[int, str]:
    ...     if not raw.isdigit():
    ...         return Err(f"Not a number: {raw!r}")
    ...     return Ok(int(raw))
    ...
    >>> result = parse_complexity("7")
    >>> if is_ok(result):
    ...     print(result.value)
    7
"""

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """A successful result.

    Attributes:
        value: The success value of type T.
    """

    value: T


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """A failed result.

    Attributes:
        error: The error value of type E (a human-readable message here).
    """

    error: E


# Using Union here as TypeVar aliases don't work with | syntax at runtime
Result = Union[Ok[T], Err[E]]  # noqa: UP007


def is_ok(result: Ok[T] | Err[E]) -> bool:
    """Return True if the result is Ok."""
    return isinstance(result, Ok)


def is_err(result: Ok[T] | Err[E]) -> bool:
    """Return True if the result is Err."""
    return isinstance(result, Err)
