from typing import Optional, Any

class DormLineError(Exception):
    """
    Base exception for DormLine application.
    """
    def __init__(self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500, details: Optional[Any] = None):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)

class ResourceNotFoundError(DormLineError):
    """
    Raised when a requested resource (room, link request, invoice) is not found.
    """
    def __init__(self, message: str = "Resource not found", details: Optional[Any] = None):
        super().__init__(message, code="NOT_FOUND", status_code=404, details=details)

class AuthenticationError(DormLineError):
    """
    Raised when a webhook signature or caller identity fails verification.
    """
    def __init__(self, message: str = "Authentication failed", details: Optional[Any] = None):
        super().__init__(message, code="AUTHENTICATION_FAILED", status_code=401, details=details)

class ValidationError(DormLineError):
    """
    Raised when input validation fails.
    """
    def __init__(self, message: str = "Validation error", details: Optional[Any] = None):
        super().__init__(message, code="VALIDATION_ERROR", status_code=422, details=details)

class ExternalServiceError(DormLineError):
    """
    Raised when an external service (LINE, SlipOK) fails.
    """
    def __init__(self, message: str = "External service error", details: Optional[Any] = None):
        super().__init__(message, code="EXTERNAL_SERVICE_ERROR", status_code=502, details=details)

class LineApiError(ExternalServiceError):
    """
    Raised when the LINE messaging API rejects a reply or push.
    """
    def __init__(self, message: str = "LINE API request failed", details: Optional[Any] = None):
        super().__init__(message, details=details)
        self.code = "LINE_API_ERROR"

class MediaDownloadError(ExternalServiceError):
    """
    Raised when an attachment cannot be downloaded from LINE.
    """
    def __init__(self, message: str = "Could not download attachment", details: Optional[Any] = None):
        super().__init__(message, details=details)
        self.code = "MEDIA_DOWNLOAD_FAILED"
