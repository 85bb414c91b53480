"""Step-keyed state machine runner.

A machine is a session value plus one handler per step. Each handler looks
at the session and either advances to a new session (which names the next
step), finishes, or fails. The runner never loops on its own: every
transition is the result of a handler.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Mapping
from dataclasses import dataclass

from ghr.core.result import Err, Ok, Result


@dataclass(frozen=True, slots=True)
class StepAdvance[S]:
    session: S


@dataclass(frozen=True, slots=True)
class StepFinish:
    pass


type StepOutcome[S] = StepAdvance[S] | StepFinish
type StepHandler[S, E] = Callable[[S], Result[StepOutcome[S], E]]

FINISH = StepFinish()


def advance[S](session: S) -> StepAdvance[S]:
    return StepAdvance(session=session)


class UnknownStep(LookupError):
    """Raised when a session names a step with no handler."""


def run_state_machine[S, E, K: Hashable](
    *,
    initial_state: S,
    get_step: Callable[[S], K],
    handlers: Mapping[K, StepHandler[S, E]],
    on_transition: Callable[[S], None] | None = None,
) -> Result[S, E]:
    """Drive ``initial_state`` until a handler finishes or fails.

    Returns:
        Ok with the session current when the finishing handler ran,
        or the first Err returned by a handler.

    Raises:
        UnknownStep: a session named a step missing from ``handlers``.
    """
    current = initial_state

    while True:
        step = get_step(current)
        handler = handlers.get(step)
        if handler is None:
            raise UnknownStep(f"no handler for step: {step}")

        outcome = handler(current)
        if isinstance(outcome, Err):
            return outcome

        if isinstance(outcome.value, StepFinish):
            return Ok(current)

        current = outcome.value.session
        if on_transition is not None:
            on_transition(current)
