"""Error handling utilities."""

from typing import Optional


class PennyekartError(Exception):
    """Base exception for the Pennyekart agents backend."""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class AgentValidationError(PennyekartError):
    """Submitted agent data failed validation."""
    status_code = 400


class DuplicateMobileError(PennyekartError):
    """Mobile number unique constraint violated."""
    status_code = 400


class AdminAuthError(PennyekartError):
    """Admin token missing, expired or invalid."""
    status_code = 401


class AgentNotFoundError(PennyekartError):
    """Agent id does not resolve to a row."""
    status_code = 404


class SupabaseError(PennyekartError):
    """Supabase operation error."""
    status_code = 500


class ConfigurationError(PennyekartError):
    """Required environment configuration is missing."""
    status_code = 500
