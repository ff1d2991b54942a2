"""Exceptions raised while grading."""


class GradingError(Exception):
    """Base exception for grading failures."""
    pass


class ResponseParseError(GradingError):
    """Raised when the LLM completion is not a JSON object."""

    def __init__(self, message: str, raw_response: str = ""):
        super().__init__(message)
        self.raw_response = raw_response


class ProfileNotFoundError(GradingError):
    """Raised when a class profile id is unknown."""

    def __init__(self, profile_id: str):
        super().__init__(f"Class profile {profile_id} not found")
        self.profile_id = profile_id


class RubricError(GradingError):
    """Raised when the rubric file is missing or malformed."""
    pass
