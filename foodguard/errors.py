"""Error taxonomy for the analysis engine.

DetectorError      -- one detector task failed; isolated, never aborts the call.
ConfigurationError -- bad weights or rule tables; raised at startup only.
PreconditionError  -- the image failed validation; the only way analyze() fails.
"""


class FoodGuardError(Exception):
    """Base class for all engine errors."""


class DetectorError(FoodGuardError):
    """A single detector could not produce a signal (timeout, bad input, unavailable)."""

    def __init__(self, detector_id: str, message: str) -> None:
        super().__init__(f"{detector_id}: {message}")
        self.detector_id = detector_id
        self.message = message


class ConfigurationError(FoodGuardError):
    """Invalid weight table, rule table, or detector registration."""


class PreconditionError(FoodGuardError):
    """The input image is missing, undecodable, or malformed."""
