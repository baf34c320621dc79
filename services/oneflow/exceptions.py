"""
Oneflow Sync Exceptions

Custom exceptions for contract synchronization errors.
"""


class OneflowError(Exception):
    """Base exception for all contract sync errors."""
    pass


class ConfigurationError(OneflowError):
    """
    Raised when sync configuration is invalid.

    This includes a malformed template registry file and missing
    provider credentials.
    """
    pass


class OneflowAPIError(OneflowError):
    """
    Raised when Oneflow API calls fail.

    Carries the provider's status code and response body verbatim.
    """
    def __init__(self, message: str, status_code: int = None, response_body: str = None):
        self.status_code = status_code
        self.response_body = response_body
        super().__init__(message)


class SignatureError(OneflowError):
    """Raised when a webhook signature does not match."""
    pass


class PayloadError(OneflowError):
    """Raised when a webhook body is missing or malformed."""
    pass


class DocumentUnavailableError(OneflowError):
    """
    Raised when the document referenced by a webhook cannot be fetched.
    """
    def __init__(self, message: str, document_id: str = None):
        self.document_id = document_id
        super().__init__(message)


class PersistenceError(OneflowError):
    """Raised when a contract or customer write fails."""
    def __init__(self, message: str, external_id: str = None):
        self.external_id = external_id
        super().__init__(message)
