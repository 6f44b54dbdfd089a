class NarrativeServiceError(Exception):
    """The narrative proxy was unreachable or returned something unusable."""


class IncompleteAssessmentError(ValueError):
    """Raised before analysis when required input is missing."""

    def __init__(self, message: str, missing_fields: list[str] | None = None, answered: int = 0):
        super().__init__(message)
        self.missing_fields = missing_fields or []
        self.answered = answered


class UnknownVendorError(KeyError):
    pass
