class InferenceError(Exception):
    """Raised when the inference provider call fails."""


class InferenceNetworkError(InferenceError):
    """Raised when the provider call fails due to network/infrastructure issues."""


class InferenceLimitError(InferenceError):
    """Raised when a request exceeds the provider's token or payload size limit."""
