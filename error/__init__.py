
class ServerError(Exception):
    """Base class for server-related errors"""

    def __init__(self, msg="Server error occurred", status_code=500):
        self.msg = msg
        self.status_code = status_code
        super().__init__(self.msg)


class ServerTimeoutError(ServerError):
    """Raised when server request times out"""

    def __init__(self, msg="Server request timed out", status_code=504):
        super().__init__(msg=msg, status_code=status_code)


class InvalidRequestError(ServerError):
    """Raised when request is invalid"""

    def __init__(self, msg="Invalid request", status_code=400):
        super().__init__(msg=msg, status_code=status_code)


class InvalidInputError(InvalidRequestError):
    """Raised when study plan input cannot produce a schedule"""

    def __init__(self, msg="Invalid study plan input", status_code=422):
        super().__init__(msg=msg, status_code=status_code)


class ContentValidationError(InvalidRequestError):
    """Raised when an uploaded file or its text is not acceptable"""

    def __init__(self, msg="Invalid content", status_code=400):
        super().__init__(msg=msg, status_code=status_code)


class SessionTooShortError(InvalidRequestError):
    """Raised when a study session is too short to be recorded"""

    def __init__(self, msg="Study session too short", status_code=400):
        super().__init__(msg=msg, status_code=status_code)


class AuthenticationError(ServerError):
    """Raised when authentication fails"""

    def __init__(self, msg="Authentication failed", status_code=401):
        super().__init__(msg=msg, status_code=status_code)


class AuthorizationError(ServerError):
    """Raised when user is not authorized"""

    def __init__(self, msg="Not authorized", status_code=403):
        super().__init__(msg=msg, status_code=status_code)


class OwnershipError(AuthorizationError):
    """Raised when a user touches a resource owned by someone else"""

    def __init__(self, msg="Resource belongs to another user", status_code=403):
        super().__init__(msg=msg, status_code=status_code)


class ResourceNotFoundError(ServerError):
    """Raised when requested resource is not found"""

    def __init__(self, msg="Resource not found", status_code=404):
        super().__init__(msg=msg, status_code=status_code)


class ExternalServiceError(ServerError):
    """Raised when the AI provider or file storage fails"""

    def __init__(self, msg="External service failed", status_code=502):
        super().__init__(msg=msg, status_code=status_code)


class AIResponseParseError(ExternalServiceError):
    """Raised when the AI answer is not the JSON document that was asked for"""

    def __init__(self, msg="AI response could not be parsed", status_code=502):
        super().__init__(msg=msg, status_code=status_code)


class ContentFetchError(ServerError):
    """Raised when content could not be fetched from an external URL"""

    def __init__(self, msg="Could not fetch URL content", status_code=502):
        super().__init__(msg=msg, status_code=status_code)


class ContentFetchTimeoutError(ServerTimeoutError):
    """Raised when a proxy takes too long to answer"""

    def __init__(self, msg="Timeout: A requisição demorou muito para responder", status_code=504):
        super().__init__(msg=msg, status_code=status_code)


class DatabaseError(ServerError):
    """Raised when a database operation fails"""

    def __init__(self, msg="Database operation failed", status_code=500):
        super().__init__(msg=msg, status_code=status_code)
