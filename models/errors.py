"""
Error and warning types raised by the likelihood engine.

InputMisalignment and RegressionFailure abort a run.  IntegrationDivergence
is recovered inside the degenerate-case handler and surfaces to callers only
as a DegenerateDayWarning.
"""

from datetime import date
from typing import Optional


class LikelihoodError(Exception):
    """Base class for likelihood engine errors."""


class InputMisalignment(LikelihoodError, ValueError):
    """A day's grid or date does not line up with the cube being built."""


class RegressionFailure(LikelihoodError):
    """The depth envelope could not be fit for a day.

    Args:
        message: Description of what went wrong.
        day: Date of the offending tag records, if known.
    """

    def __init__(self, message: str, day: Optional[date] = None):
        self.day = day
        if day is not None:
            message = f"{message} (day {day})"
        super().__init__(message)


class IntegrationDivergence(LikelihoodError):
    """The interval-probability integral has no stable finite solution."""


class DegenerateDayWarning(UserWarning):
    """A day's likelihood surface was replaced by zeros."""
