"""
Error taxonomy for the bridge. Every error is terminal for the request
that raised it and is rendered as `{"error": message}` with the given
status code.
"""

from starlette import status


class BridgeError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Internal error"

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class MissingParameter(BridgeError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Missing required parameters"


class BackendUnavailable(BridgeError):
    message = "Identity backend is not initialized."


class BackendError(BridgeError):
    message = "Identity backend error"


class SessionExchangeFailed(BackendError):
    message = "Could not exchange code for a session"


class SessionIncomplete(BridgeError):
    message = "Failed to create session"


class StoreWriteFailed(BridgeError):
    message = "Failed to store token"


class InvalidToken(BridgeError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Invalid token"


class TokenExpired(BridgeError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Token expired"


class StoreReadFailed(Exception):
    """
    Raised by the token store when a lookup errors. Never reaches the
    client directly; callers collapse it into `InvalidToken`.
    """
