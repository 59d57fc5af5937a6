"""Application exceptions.

Every failure the upload flow can hit has its own type so that the HTTP layer
can map it to a status code without string matching.
"""


class MenuExtractorError(Exception):
    """Base class for all application errors."""


class ConfigurationError(MenuExtractorError):
    """A required setting (API key, database target) is missing or unusable."""


class ExtractionError(MenuExtractorError):
    """The completion service could not produce a usable menu."""


class CompletionServiceError(ExtractionError):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class RateLimitError(CompletionServiceError):
    def __init__(self, message: str, retry_after: float | None = None):
        super().__init__(message, status_code=429)
        self.retry_after = retry_after


class EmptyResponseError(ExtractionError):
    pass


class InvalidModelJSONError(ExtractionError):
    def __init__(self, raw: str):
        super().__init__("Model did not return valid JSON")
        self.raw = raw


class MenuValidationError(ExtractionError):
    def __init__(self, issues: list, raw: str):
        super().__init__("Validation failed")
        self.issues = issues
        self.raw = raw
