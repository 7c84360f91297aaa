"""Validation exceptions for carfinder."""

from .base import CarFinderError


class ValidationError(CarFinderError):
    """Input validation failed."""

    error_code = "CF_VAL_001"


class EmptyRequirementsError(ValidationError):
    """No free-text requirements were supplied."""

    error_code = "CF_VAL_002"


class EmptyCandidateListError(ValidationError):
    """Candidate vehicle id list is empty."""

    error_code = "CF_VAL_003"


class EmptyConversationError(ValidationError):
    """Conversation history contains no messages."""

    error_code = "CF_VAL_004"
