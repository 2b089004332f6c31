"""Retry policy for walking a model ladder.

The ladder walk is a small state machine. Its state is a ``LadderCursor``
(model index, attempt number, pass number) and ``RetryPolicy.next_cursor``
is the whole transition table:

==================  ==========================================================
Outcome             Next state
==================  ==========================================================
Success             terminal
RateLimited         next model, attempt 1
Invalid             same model, attempt + 1; next model once attempts run out
TransportError      same as Invalid
==================  ==========================================================

Stepping past the last model starts a new pass (after ``pass_delay``) until
``max_passes`` passes are used up, then the walk is exhausted.
"""

from __future__ import annotations

from dataclasses import dataclass

from fortunecookie.models.fortune import Candidate  # noqa: TC001 - dataclass field type
from fortunecookie.validation.candidate import Invalid


@dataclass(frozen=True)
class Success:
    """The model produced a valid candidate."""

    candidate: Candidate


@dataclass(frozen=True)
class RateLimited:
    """The provider throttled the call."""

    retry_after: float | None = None


@dataclass(frozen=True)
class TransportError:
    """The call itself failed, or returned nothing."""

    reason: str


AttemptOutcome = Success | RateLimited | Invalid | TransportError


@dataclass(frozen=True)
class LadderCursor:
    """Position in the ladder walk.

    Attributes:
        model_index: Index of the current model in the ladder (0-based).
        attempt: Attempt number against the current model (1-based).
        pass_number: Full-ladder pass number (1-based).
    """

    model_index: int = 0
    attempt: int = 1
    pass_number: int = 1


@dataclass(frozen=True)
class RetryPolicy:
    """Bounds for the ladder walk.

    Attributes:
        max_attempts_per_model: Attempts per model before moving on.
        max_passes: Full passes over the ladder before giving up.
        pass_delay: Seconds to pause between passes.
        deadline: Optional overall time budget in seconds for one generation.
    """

    max_attempts_per_model: int = 3
    max_passes: int = 1
    pass_delay: float = 1.0
    deadline: float | None = None

    def __post_init__(self) -> None:
        if self.max_attempts_per_model < 1:
            raise ValueError("max_attempts_per_model must be at least 1")
        if self.max_passes < 1:
            raise ValueError("max_passes must be at least 1")
        if self.pass_delay < 0:
            raise ValueError("pass_delay must not be negative")
        if self.deadline is not None and self.deadline <= 0:
            raise ValueError("deadline must be positive")

    def next_cursor(
        self,
        cursor: LadderCursor,
        outcome: AttemptOutcome,
        ladder_size: int,
    ) -> LadderCursor | None:
        """Apply one outcome to the cursor.

        Args:
            cursor: Position of the attempt that produced ``outcome``.
            outcome: Result of that attempt.
            ladder_size: Number of models in the ladder.

        Returns:
            The next position, or None when the walk is over (either
            because of success or because every pass is used up).
        """
        if isinstance(outcome, Success):
            return None

        if (
            isinstance(outcome, Invalid | TransportError)
            and cursor.attempt < self.max_attempts_per_model
        ):
            return LadderCursor(cursor.model_index, cursor.attempt + 1, cursor.pass_number)

        if cursor.model_index + 1 < ladder_size:
            return LadderCursor(cursor.model_index + 1, 1, cursor.pass_number)

        if cursor.pass_number < self.max_passes:
            return LadderCursor(0, 1, cursor.pass_number + 1)

        return None

    @staticmethod
    def starts_new_pass(previous: LadderCursor, current: LadderCursor) -> bool:
        """Whether moving from ``previous`` to ``current`` begins a new pass."""
        return current.pass_number > previous.pass_number

    def max_calls(self, ladder_size: int) -> int:
        """Upper bound on provider calls for one generation."""
        return ladder_size * self.max_attempts_per_model * self.max_passes
