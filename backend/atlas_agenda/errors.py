class ExtractionError(Exception):
    """Base for every failure the extraction pipeline can report."""

    kind = "error"


class ConfigurationError(ExtractionError):
    kind = "config_error"


class CompletionAPIError(ExtractionError):
    kind = "api_error"

    def __init__(self, status: int | None, body: str, message: str | None = None):
        self.status = status
        self.body = body
        super().__init__(message or f"Atlas API error: {status} {body}")


class RateLimitError(CompletionAPIError):
    kind = "rate_limited"

    def __init__(self, body: str, status: int | None = 429):
        super().__init__(
            status,
            body,
            message=f"يرجى الانتظار قليلًا ثم إعادة المحاولة (429): {body}",
        )


class UnparseableResponseError(ExtractionError):
    kind = "unparseable"


class EmptyInputError(ExtractionError):
    kind = "empty_input"


class StorageError(ExtractionError):
    kind = "storage_error"
