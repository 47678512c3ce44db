# -*- coding: utf-8 -*-
"""Custom exceptions for the application."""

from enum import Enum


class ApiException(Exception):
    """Exception raised when the backend answers with a non-2xx status."""

    def __init__(self, message: str, status_code: int = None,
                 response_data: dict = None, context: str = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response_data = response_data or {}
        self.context = context

    @property
    def is_auth_error(self) -> bool:
        """401/403: the session credential was refused or has expired."""
        return self.status_code in (401, 403)

    def __str__(self):
        if self.status_code:
            return f"[{self.status_code}] {self.message}"
        return self.message


class NetworkException(Exception):
    """Exception raised for network/connection errors, timeouts included."""

    def __init__(self, message: str, original_error: Exception = None,
                 context: str = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error
        self.context = context


class AuthenticationErrorType(Enum):
    NO_CREDENTIALS = "no_credentials"
    INVALID_CREDENTIALS = "invalid_credentials"
    NETWORK_ERROR = "network_error"
    SERVER_ERROR = "server_error"
    INVALID_RESPONSE = "invalid_response"
    UNKNOWN_ERROR = "unknown_error"


class AuthenticationException(Exception):
    """
    No usable session credential. Fatal to an export session.

    When raised in the middle of a session, `summary` holds the work
    completed before the credential was refused.
    """

    def __init__(self, message: str,
                 error_type: AuthenticationErrorType = AuthenticationErrorType.UNKNOWN_ERROR,
                 summary=None):
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.summary = summary

    def __str__(self):
        return f"{self.message} ({self.error_type.value})"


class LocalStorageException(Exception):
    """A database operation failed during a sync session."""

    def __init__(self, message: str, original_error: Exception = None,
                 context: str = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error
        self.context = context


class SyncBusyError(Exception):
    """Another sync operation holds the slot this call needs."""

    def __init__(self, operation: str, holder: str = None):
        message = f"Synchronisation déjà en cours: {holder or operation}"
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.holder = holder


class ValidationException(Exception):
    """Exception raised for validation errors."""

    def __init__(self, message: str, field: str = None,
                 errors: list = None, context: str = None):
        super().__init__(message)
        self.message = message
        self.field = field
        self.errors = errors or []
        self.context = context
