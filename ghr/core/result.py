"""Result type for explicit error handling.

Remote calls in this package never raise across module seams. Every
operation that can fail returns either ``Ok(value)`` or ``Err(error)`` and
the caller decides whether the failure is transient or fatal:

    result = api.get_release_by_tag("v1.0.0")
    match result:
        case Ok(release):
            ...
        case Err(error):
            console.warning(str(error))
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Ok[T]:
    """Successful outcome carrying ``value``."""

    value: T

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err[E]:
    """Failed outcome carrying ``error``."""

    error: E

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


type Result[T, E] = Ok[T] | Err[E]
