from typing import Optional


class UpstreamError(Exception):
    """A NASA endpoint answered with a non-2xx status or could not be reached."""
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class FetchError(Exception):
    """Image bytes could not be fetched for captioning."""
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class InferencePayloadError(ValueError):
    """The inference API answered with a shape we do not recognise."""


class AnalysisError(Exception):
    pass


class BatchValidationError(ValueError):
    pass
