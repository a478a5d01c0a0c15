"""Error handling utilities."""

from typing import Optional


class SuperTCError(Exception):
    """Base exception for the SuperTC backend."""
    pass


class ConfigError(SuperTCError):
    """Required configuration is missing or invalid."""
    pass


class SupabaseError(SuperTCError):
    """Supabase operation error."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class AuthError(SuperTCError):
    """Authentication failed or no user is signed in."""
    pass


class MLSError(SuperTCError):
    """MLS listing lookup error."""
    pass


class ExtractionError(SuperTCError):
    """LLM document extraction error."""
    pass
