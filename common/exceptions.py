"""
Error kinds raised by the download benchmark.
"""


class BenchmarkError(Exception):
    """Base class for all benchmark errors."""


class ConfigurationError(BenchmarkError):
    """Invalid or incomplete run configuration. Raised before any work starts."""


class ListingError(BenchmarkError):
    """The bucket listing failed. Aborts the run."""


class RetrievalError(BenchmarkError):
    """A single object retrieval failed.

    Attributes:
        key: Object key being retrieved
        status_code: Status code reported by the storage service
    """

    def __init__(self, message: str, key: str, status_code: int):
        super().__init__(message)
        self.key = key
        self.status_code = status_code


class OpenRetrievalError(RetrievalError):
    """The retrieval failed before the first byte was received."""


class ReadRetrievalError(RetrievalError):
    """The retrieval failed while the body was being streamed."""


class SerializationError(BenchmarkError):
    """The final report could not be serialized."""
