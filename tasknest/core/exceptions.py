"""
Domain error taxonomy.

Every recognized failure kind is a ``DomainError`` subclass carrying a stable
code, a default message and the HTTP status it maps to. The app-level handler
in ``tasknest.main`` renders them as ``{"detail": {"code", "message"}}``.
Anything that is not a ``DomainError`` is treated as an internal failure.
"""

from __future__ import annotations

from fastapi import status


class DomainError(Exception):
    """Base class for typed domain failures."""

    code: str = "DOMAIN_ERROR"
    message: str = "Domain error"
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_detail(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


# ---------------------------------------------------------------------------
# Membership / access
# ---------------------------------------------------------------------------

class NotOrganizationMemberError(DomainError):
    code = "NOT_ORGANIZATION_MEMBER"
    message = "User is not a member of the organization"
    status_code = status.HTTP_403_FORBIDDEN


class NotTaskCreatorError(DomainError):
    code = "NOT_TASK_CREATOR"
    message = "Only the task creator can perform this action"
    status_code = status.HTTP_403_FORBIDDEN


class TaskPermissionDeniedError(DomainError):
    code = "TASK_PERMISSION_DENIED"
    message = "You do not have permission to modify this task"
    status_code = status.HTTP_403_FORBIDDEN


# ---------------------------------------------------------------------------
# Not found
# ---------------------------------------------------------------------------

class OrganizationNotFoundError(DomainError):
    code = "ORGANIZATION_NOT_FOUND"
    message = "Organization not found"
    status_code = status.HTTP_404_NOT_FOUND


class TaskNotFoundError(DomainError):
    code = "TASK_NOT_FOUND"
    message = "Task not found"
    status_code = status.HTTP_404_NOT_FOUND


class OrganizationMemberNotFoundError(DomainError):
    code = "ORGANIZATION_MEMBER_NOT_FOUND"
    message = "Organization member not found"
    status_code = status.HTTP_404_NOT_FOUND


class UserNotFoundError(DomainError):
    code = "USER_NOT_FOUND"
    message = "User not found"
    status_code = status.HTTP_404_NOT_FOUND


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

class TitleRequiredError(DomainError):
    code = "TITLE_REQUIRED"
    message = "Title is required"


class TitleEmptyError(DomainError):
    code = "TITLE_EMPTY"
    message = "Title cannot be empty"


class InvalidOrganizationNameError(DomainError):
    code = "INVALID_ORGANIZATION_NAME"
    message = "Organization name cannot be empty"


class NoUserIDsProvidedError(DomainError):
    code = "NO_USER_IDS_PROVIDED"
    message = "No user IDs provided"


class InvalidTaskAssigneeError(DomainError):
    code = "INVALID_TASK_ASSIGNEE"
    message = "All assignees must be existing members of the task's organization"


class CannotRemoveYourselfError(DomainError):
    code = "CANNOT_REMOVE_YOURSELF"
    message = "You cannot remove yourself from the organization"


# ---------------------------------------------------------------------------
# Invites
# ---------------------------------------------------------------------------

class InvalidInviteCodeError(DomainError):
    code = "INVALID_INVITE_CODE"
    message = "Invalid invite code"
    status_code = status.HTTP_404_NOT_FOUND


class AlreadyOrganizationMemberError(DomainError):
    code = "ALREADY_ORGANIZATION_MEMBER"
    message = "User is already a member of the organization"
    status_code = status.HTTP_409_CONFLICT


class InviteCodeGenerationFailedError(DomainError):
    code = "INVITE_CODE_GENERATION_FAILED"
    message = "Failed to generate invite code"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


# ---------------------------------------------------------------------------
# AI task generation
# ---------------------------------------------------------------------------

class AIServiceNotConfiguredError(DomainError):
    code = "AI_SERVICE_NOT_CONFIGURED"
    message = "AI task generation is not configured"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class AINoTasksGeneratedError(DomainError):
    code = "AI_NO_TASKS_GENERATED"
    message = "No tasks could be generated from the text"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class AINoValidTasksError(DomainError):
    code = "AI_NO_VALID_TASKS"
    message = "No valid tasks were generated from the text"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class AITooManyTasksError(DomainError):
    code = "AI_TOO_MANY_TASKS"
    message = "Too many tasks were generated from the text"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class TaskGenerationError(Exception):
    """Wraps an extractor failure or timeout. Not a domain error: surfaces as a 500."""


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------

class UsernameRequiredError(DomainError):
    code = "USERNAME_REQUIRED"
    message = "Username is required"


class PasswordTooShortError(DomainError):
    code = "PASSWORD_TOO_SHORT"
    message = "Password is too short"


class UsernameTakenError(DomainError):
    code = "USERNAME_TAKEN"
    message = "Username is already taken"
    status_code = status.HTTP_409_CONFLICT


class InvalidCredentialsError(DomainError):
    code = "INVALID_CREDENTIALS"
    message = "Invalid username or password"
    status_code = status.HTTP_401_UNAUTHORIZED


class SignupFailedError(DomainError):
    code = "SIGNUP_FAILED"
    message = "Failed to create account"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, step: str) -> None:
        self.step = step
        super().__init__(f"Failed to create account: {step} step failed")
