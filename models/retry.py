"""
Degenerate-case handling for daily likelihood integration.

Each day walks a small state machine:

    NOT_ATTEMPTED -> ATTEMPTED_PLAIN -> ATTEMPTED_WIDENED -> FAILED
                  \\-> ATTEMPTED_WIDENED -> FAILED

A run that starts without standard-error widening gets one retry with
widening (when retries are enabled).  A run that already widened, or has
retries disabled, goes straight to FAILED on divergence.  FAILED days get
an all-zero surface and a DegenerateDayWarning naming the date.
"""

import warnings
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Callable, List, Optional, Tuple

import numpy as np

from models.errors import IntegrationDivergence, DegenerateDayWarning


class AttemptState(Enum):
    """Progress of one day's integration attempts."""
    NOT_ATTEMPTED = "not_attempted"
    ATTEMPTED_PLAIN = "attempted_plain"        # Failed without SE widening
    ATTEMPTED_WIDENED = "attempted_widened"    # Failed with SE widening
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class IntegrationOutcome:
    """Result of resolving one day's integration.

    Attributes:
        surface: Likelihood surface (NaN = no information), or zeros if failed.
        state: Final AttemptState (SUCCEEDED or FAILED).
        widened: Whether the successful attempt used SE widening.
        history: States passed through, in order.
        errors: Messages of the divergences encountered.
    """

    surface: np.ndarray
    state: AttemptState
    widened: bool = False
    history: List[AttemptState] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        return self.state is AttemptState.FAILED


class DegenerateCaseHandler:
    """Runs an integration attempt with the retry/fallback policy.

    Args:
        allow_retry: Retry once with widening after a plain failure.
    """

    def __init__(self, allow_retry: bool = True):
        self.allow_retry = allow_retry

    def next_state(self, state: AttemptState, widened: bool, ok: bool) -> AttemptState:
        """Transition after an attempt with the given widening finished."""
        if ok:
            return AttemptState.SUCCEEDED
        if widened:
            return AttemptState.ATTEMPTED_WIDENED
        return AttemptState.ATTEMPTED_PLAIN

    def should_retry(self, state: AttemptState) -> bool:
        return self.allow_retry and state is AttemptState.ATTEMPTED_PLAIN

    def resolve(
        self,
        attempt: Callable[[bool], np.ndarray],
        use_se: bool,
        shape: Tuple[int, int],
        day: Optional[date] = None,
        label: str = "likelihood",
    ) -> IntegrationOutcome:
        """
        Run ``attempt(widened)`` under the retry policy.

        Args:
            attempt: Callable that integrates with (True) or without (False)
                standard-error widening and raises IntegrationDivergence on failure.
            use_se: Whether the first attempt is widened.
            shape: Shape of the all-zero fallback surface.
            day: Date reported in the warning.
            label: Name of the quantity reported in the warning.

        Returns:
            IntegrationOutcome with the surface and final state.
        """
        state = AttemptState.NOT_ATTEMPTED
        history = [state]
        errors: List[str] = []
        widened = use_se

        while True:
            try:
                surface = attempt(widened)
            except IntegrationDivergence as exc:
                errors.append(str(exc))
                state = self.next_state(state, widened, ok=False)
                history.append(state)
                if self.should_retry(state):
                    widened = True
                    continue
                break
            state = self.next_state(state, widened, ok=True)
            history.append(state)
            return IntegrationOutcome(surface, state, widened, history, errors)

        history.append(AttemptState.FAILED)
        warnings.warn(
            f"{label} integration failed after {len(errors)} attempt(s), most likely "
            f"a divergent integral for {day} ({errors[-1]}). Using an all-zero surface.",
            DegenerateDayWarning,
            stacklevel=2,
        )
        return IntegrationOutcome(
            np.zeros(shape), AttemptState.FAILED, widened, history, errors
        )
