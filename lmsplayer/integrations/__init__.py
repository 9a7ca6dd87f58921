"""
External integrations for lms-player.

- lms_client: async HTTP client for the LMS platform API
"""

from .lms_client import AuthResult, LMSClient

__all__ = ["AuthResult", "LMSClient"]
