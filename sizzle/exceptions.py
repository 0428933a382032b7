"""
Error taxonomy shared by the record store, the GoHighLevel client and routes.
"""


class SizzleError(Exception):
    """Base exception for Sizzle errors"""
    pass


class ConfigurationError(SizzleError):
    """A required setting (e.g. an API key) is missing"""
    pass


class ValidationError(SizzleError):
    """Input to a mutation failed validation"""
    pass


class RecordNotFoundError(SizzleError):
    """A single-record fetch matched nothing"""

    def __init__(self, table, filters=None):
        self.table = table
        self.filters = filters or {}
        super().__init__(f"No {table} record matching {self.filters}")


# ── GoHighLevel ───────────────────────────────────────────────────────────────

class GHLError(SizzleError):
    """Base for errors talking to the GoHighLevel API"""
    pass


class AuthenticationError(GHLError):
    """API key rejected (HTTP 401)"""

    def __init__(self, message='Invalid or expired API key. Please check your GHL API key configuration.'):
        super().__init__(message)


class GHLAPIError(GHLError):
    """Non-2xx response that is not otherwise mapped"""

    def __init__(self, status_code, message=None):
        self.status_code = status_code
        super().__init__(message or f"HTTP error! status: {status_code}")


class ServiceUnreachableError(GHLError):
    """Network-level failure reaching the API"""

    def __init__(self, message='Unable to connect to Go High Level API. Please check your internet connection and API configuration.'):
        super().__init__(message)


class ServiceTimeoutError(GHLError):
    """The API did not answer within the configured timeout"""

    def __init__(self, timeout=None):
        self.timeout = timeout
        suffix = f" after {timeout}s" if timeout else ''
        super().__init__(f"Go High Level API request timed out{suffix}")
