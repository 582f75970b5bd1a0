class ExtractionError(Exception):
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NoHomepageError(ExtractionError):
    def __init__(self, base_url: str):
        self.base_url = base_url
        super().__init__(f"No homepage among discovered pages for {base_url}")


class InferenceError(Exception):
    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        retryable: bool = True,
    ):
        self.message = message
        self.status_code = status_code
        self.retryable = retryable
        super().__init__(message)


class InferenceResponseError(InferenceError):
    """The gateway answered, but the content is not a usable JSON object."""

    def __init__(self, message: str):
        super().__init__(message, retryable=False)
