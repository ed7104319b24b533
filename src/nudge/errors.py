"""Typed error taxonomy.

Service code raises these; the global error handler maps each to a status
code and a ``{"detail": ...}`` body. Nothing below the router layer builds
HTTP responses itself.
"""

from __future__ import annotations

from enum import Enum


class ExternalService(str, Enum):
    """Collaborators the service talks to over the network."""

    DATABASE = "database"
    REALTIME = "realtime"
    PARSE_SYLLABUS = "parse-syllabus"
    CREATE_DEMO_POSTS = "create-demo-posts"
    EMAIL = "email"


class NudgeError(Exception):
    """Base class for all domain errors."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class AuthenticationError(NudgeError):
    """No session, or the session token is invalid or expired."""

    status_code = 401


class ValidationError(NudgeError):
    """A required field is missing before a mutation. Blocks the action locally."""

    status_code = 422


class NotFoundError(NudgeError):
    """The row does not exist or is not owned by the caller."""

    status_code = 404


class AlreadyExistsError(NudgeError):
    """A uniqueness rule rejected the write, or the work is already in flight."""

    status_code = 409


class RemoteServiceError(NudgeError):
    """A call to an external collaborator failed."""

    status_code = 502

    def __init__(self, service: ExternalService, message: str) -> None:
        super().__init__(message)
        self.service = service


class RemoteTimeoutError(RemoteServiceError):
    """A call to an external collaborator exceeded its client-side timeout."""

    status_code = 504

    def __init__(self, service: ExternalService, timeout_seconds: float) -> None:
        super().__init__(service, f"{service.value} timed out after {timeout_seconds:g}s")
        self.timeout_seconds = timeout_seconds
