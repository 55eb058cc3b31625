"""
Errors raised by the project services and their HTTP mapping.
"""

from __future__ import annotations


class ProjectServiceError(Exception):
    """Base error; `status_code` is the HTTP status the API answers with."""

    status_code = 500
    default_message = "Server Error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def public_message(self) -> str:
        return self.message


class ValidationError(ProjectServiceError):
    """Required input missing or malformed."""

    status_code = 400
    default_message = "Invalid request"


class NotFoundError(ProjectServiceError):
    """Referenced project document does not exist."""

    status_code = 404
    default_message = "Project not found"


class UpstreamStoreError(ProjectServiceError):
    """
    Failure of the relational, document or blob store.

    The detailed message is for server logs only; callers get the generic
    default message.
    """

    status_code = 500

    @property
    def public_message(self) -> str:
        return self.default_message
