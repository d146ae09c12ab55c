"""Bounded retry policy wrapped around activation transitions.

The attempt counter is an explicit value: it comes in with each call and
a new one goes out with each outcome, so the policy can be exercised
without any session machinery and stored wherever the caller likes.
The cap belongs to the policy, never to the caller-supplied state.
"""

from collections.abc import Awaitable, Callable, Hashable
from dataclasses import dataclass, replace

from src.activation.core.config import get_settings
from src.activation.core.errors import (
    CONTEXT_DEFAULTS,
    ActivationError,
    ErrorClassifier,
    ErrorContext,
    default_classifier,
)
from src.activation.core.logging import get_logger

logger = get_logger(__name__)

EXHAUSTED_MESSAGE = (
    "Too many failed attempts. Please try again later or contact support."
)
IN_PROGRESS_MESSAGE = "An attempt is already in progress. Please wait for it to finish."


@dataclass(frozen=True)
class AttemptState:
    """Consecutive failed attempts within one flow instance."""

    attempts: int = 0
    max_attempts: int = 3

    @property
    def remaining(self) -> int:
        return max(0, self.max_attempts - self.attempts)

    @property
    def exhausted(self) -> bool:
        return self.attempts >= self.max_attempts

    def failed(self) -> "AttemptState":
        return replace(self, attempts=self.attempts + 1)

    def reset(self) -> "AttemptState":
        return replace(self, attempts=0)


@dataclass(frozen=True)
class TransitionOutcome[T]:
    """Result of one guarded transition attempt.

    Exactly one of value/error is meaningful. Benign errors (goal already
    reached) count as success for the caller.
    """

    attempt_state: AttemptState
    value: T | None = None
    error: ActivationError | None = None
    short_circuited: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None or self.error.benign


def _remaining_hint(state: AttemptState) -> str:
    if state.remaining == 1:
        return "(1 attempt remaining)"
    return f"({state.remaining} attempts remaining)"


class RetryPolicy:
    """Caps consecutive failures per flow instance and blocks re-entry.

    One instance is shared per application so the re-entry guard sees every
    request; the attempt counter itself still travels with each call.
    """

    def __init__(
        self,
        max_attempts: int | None = None,
        classifier: ErrorClassifier = default_classifier,
    ):
        self.max_attempts = max_attempts or get_settings().activation_max_attempts
        self.classifier = classifier
        self._in_flight: set[tuple[Hashable, ErrorContext]] = set()

    def initial_state(self) -> AttemptState:
        return AttemptState(attempts=0, max_attempts=self.max_attempts)

    def normalize(self, state: AttemptState | None) -> AttemptState:
        """Adopt the caller's counter under this policy's cap."""
        if state is None:
            return self.initial_state()
        return AttemptState(attempts=max(0, state.attempts), max_attempts=self.max_attempts)

    async def run[T](
        self,
        operation: Callable[[], Awaitable[T]],
        state: AttemptState | None,
        context: ErrorContext,
        owner: Hashable | None = None,
    ) -> TransitionOutcome[T]:
        """Run one attempt of a transition under the policy.

        Short-circuits without calling the operation when the cap has been
        reached or the same owner (usually an identity id) still has an
        attempt running for this context.
        """
        state = self.normalize(state)
        default_kind = CONTEXT_DEFAULTS[context]

        if state.exhausted:
            logger.warning(
                "Activation attempts exhausted",
                context=context.value,
                attempts=state.attempts,
            )
            error = ActivationError(default_kind, EXHAUSTED_MESSAGE, retryable=False)
            return TransitionOutcome(attempt_state=state, error=error, short_circuited=True)

        key = (owner, context)
        if key in self._in_flight:
            error = ActivationError(default_kind, IN_PROGRESS_MESSAGE)
            return TransitionOutcome(attempt_state=state, error=error, short_circuited=True)

        self._in_flight.add(key)
        try:
            value = await operation()
        except Exception as exc:
            error = self.classifier.classify(exc, context)
            if error.benign:
                return TransitionOutcome(attempt_state=state.reset(), error=error)

            state = state.failed()
            logger.info(
                "Activation attempt failed",
                context=context.value,
                kind=error.kind.value,
                attempts=state.attempts,
                remaining=state.remaining,
            )
            if error.retryable:
                if state.exhausted:
                    error = ActivationError(
                        error.kind,
                        f"{error.message} {EXHAUSTED_MESSAGE}",
                        cause=error.cause,
                        retryable=False,
                        benign=False,
                    )
                else:
                    error = ActivationError(
                        error.kind,
                        f"{error.message} {_remaining_hint(state)}",
                        cause=error.cause,
                        benign=False,
                    )
            return TransitionOutcome(attempt_state=state, error=error)
        finally:
            self._in_flight.discard(key)

        return TransitionOutcome(attempt_state=state.reset(), value=value)
