from fastapi import HTTPException, status
from typing import Any, Dict, Optional

class BallTalkException(HTTPException):
    """Base exception for BallTalk API"""
    def __init__(
        self,
        status_code: int,
        detail: Any,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)

class NotFoundException(BallTalkException):
    """Resource not found"""
    def __init__(self, resource: str, resource_id: Any):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} with id {resource_id} not found"
        )

class DuplicateError(BallTalkException):
    """Resource already exists"""
    def __init__(self, field: str, value: str):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{field} '{value}' already exists"
        )

class UnauthorizedError(BallTalkException):
    """User is not authorized"""
    def __init__(self, message: str = "Not authorized"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=message,
            headers={"WWW-Authenticate": "Bearer"}
        )

class ForbiddenError(BallTalkException):
    """User is authenticated but may not touch the resource"""
    def __init__(self, message: str = "Not authorized"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=message)

class BadRequestError(BallTalkException):
    def __init__(self, message: str):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=message)

class ConflictError(BallTalkException):
    """The resource is not in a state that allows the operation"""
    def __init__(self, message: str):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=message)

class ShareExpiredError(BallTalkException):
    def __init__(self, share_id: Any):
        super().__init__(
            status_code=status.HTTP_410_GONE,
            detail=f"Share {share_id} has expired"
        )


# User-facing messages for authentication error codes.
AUTH_ERROR_MESSAGES: Dict[str, str] = {
    'auth/email-already-in-use': 'This email is already registered. Please sign in instead.',
    'auth/username-already-in-use': 'This username is already taken. Please choose another one.',
    'auth/invalid-email': 'Please enter a valid email address.',
    'auth/weak-password': 'Password should be at least 6 characters.',
    'auth/wrong-password': 'Incorrect password. Please try again.',
    'auth/user-not-found': 'No account found with this email address.',
    'auth/account-exists-with-different-credential': 'An account already exists with the same email address but different sign-in credentials.',
    'auth/network-request-failed': 'A network error occurred. Please check your connection and try again.',
    'auth/operation-not-allowed': 'This sign in method is not enabled. Please contact support.',
    'auth/requires-recent-login': 'This operation requires recent authentication. Please sign in again.',
    'auth/user-token-expired': 'Your session has expired. Please sign in again.',
    'auth/user-not-verified': 'Please verify your email address before signing in.',
}

# HTTP status per auth error code; anything unlisted is a 400.
_AUTH_ERROR_STATUS: Dict[str, int] = {
    'auth/email-already-in-use': status.HTTP_409_CONFLICT,
    'auth/username-already-in-use': status.HTTP_409_CONFLICT,
    'auth/wrong-password': status.HTTP_401_UNAUTHORIZED,
    'auth/user-not-found': status.HTTP_401_UNAUTHORIZED,
    'auth/user-token-expired': status.HTTP_401_UNAUTHORIZED,
    'auth/requires-recent-login': status.HTTP_401_UNAUTHORIZED,
}


def get_auth_error_message(code: str) -> str:
    """Look up the user-facing message for an auth error code ('' if unknown)."""
    return AUTH_ERROR_MESSAGES.get(code, '')


class AuthError(BallTalkException):
    """Authentication failure carrying a code and a user-facing message."""
    def __init__(self, code: str, message: Optional[str] = None):
        self.code = code
        self.message = (
            get_auth_error_message(code)
            or message
            or 'An unknown authentication error occurred'
        )
        headers = None
        status_code = _AUTH_ERROR_STATUS.get(code, status.HTTP_400_BAD_REQUEST)
        if status_code == status.HTTP_401_UNAUTHORIZED:
            headers = {"WWW-Authenticate": "Bearer"}
        super().__init__(
            status_code=status_code,
            detail={"code": self.code, "message": self.message},
            headers=headers
        )
