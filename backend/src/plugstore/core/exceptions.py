"""Custom exceptions for the Plugstore backend.

Every failure a service can report is a PlugstoreException subclass carrying a
stable error code, an HTTP status and a structured details payload. The API
layer renders them through the handlers registered in main.py.
"""

from typing import Any


class PlugstoreException(Exception):
    """Base exception class for the Plugstore backend."""

    def __init__(
        self,
        message: str,
        error_code: str,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


# Plugin field validation
class InvalidNameError(PlugstoreException):
    """Raised when a plugin name is outside the allowed length."""

    def __init__(self, name: str | None, min_length: int, max_length: int):
        super().__init__(
            message=f"Invalid plugin name: must be {min_length}-{max_length} characters",
            error_code="INVALID_NAME",
            status_code=400,
            details={"name": name, "min_length": min_length, "max_length": max_length},
        )


class InvalidDescriptionError(PlugstoreException):
    """Raised when a plugin description is too long."""

    def __init__(self, length: int, max_length: int):
        super().__init__(
            message=f"Invalid description: must be up to {max_length} characters",
            error_code="INVALID_DESCRIPTION",
            status_code=400,
            details={"length": length, "max_length": max_length},
        )


class InvalidAuthorError(PlugstoreException):
    """Raised when the author does not resolve to a known user."""

    def __init__(self, author_id: str):
        super().__init__(
            message=f"Author '{author_id}' does not exist",
            error_code="INVALID_AUTHOR",
            status_code=400,
            details={"author_id": author_id},
        )


class InvalidLicenseError(PlugstoreException):
    """Raised when the license is not one of the accepted identifiers."""

    def __init__(self, license_name: str | None, valid_licenses: list[str]):
        super().__init__(
            message=f"Invalid license '{license_name}'",
            error_code="INVALID_LICENSE",
            status_code=400,
            details={"license": license_name, "valid_licenses": valid_licenses},
        )


class InvalidPlatformError(PlugstoreException):
    """Raised when target platforms are empty or contain unknown values."""

    def __init__(self, invalid_platforms: list[str], valid_platforms: list[str]):
        message = (
            "At least one target platform is required"
            if not invalid_platforms
            else f"Invalid target platforms: {', '.join(invalid_platforms)}"
        )
        super().__init__(
            message=message,
            error_code="INVALID_PLATFORM",
            status_code=400,
            details={"invalid_platforms": invalid_platforms, "valid_platforms": valid_platforms},
        )


class InvalidTagsError(PlugstoreException):
    """Raised when tags outside the fixed vocabulary are supplied."""

    def __init__(self, invalid_tags: list[str], valid_tags: list[str]):
        super().__init__(
            message=f"Invalid tags: {', '.join(invalid_tags)}",
            error_code="INVALID_TAGS",
            status_code=400,
            details={"invalid_tags": invalid_tags, "valid_tags": valid_tags},
        )


# Plugin graph
class PluginNotFoundError(PlugstoreException):
    """Raised when a plugin is not found."""

    def __init__(self, plugin_id: str):
        super().__init__(
            message=f"Plugin '{plugin_id}' not found",
            error_code="PLUGIN_NOT_FOUND",
            status_code=404,
            details={"plugin_id": plugin_id},
        )


class ForkNotFoundError(PlugstoreException):
    """Raised when the fork origin plugin does not exist."""

    def __init__(self, fork_origin_id: str):
        super().__init__(
            message=f"Fork origin plugin '{fork_origin_id}' not found",
            error_code="FORK_NOT_FOUND",
            status_code=404,
            details={"fork_origin_id": fork_origin_id},
        )


class DependencyNotFoundError(PlugstoreException):
    """Raised when one or more dependency plugins do not exist."""

    def __init__(self, missing_ids: list[str]):
        super().__init__(
            message=f"Dependency plugins not found: {', '.join(missing_ids)}",
            error_code="DEPENDENCY_NOT_FOUND",
            status_code=404,
            details={"missing_ids": missing_ids},
        )


class SelfDependencyError(PlugstoreException):
    """Raised when a plugin is asked to depend on itself."""

    def __init__(self, plugin_id: str):
        super().__init__(
            message="Plugin cannot depend on itself",
            error_code="SELF_DEPENDENCY",
            status_code=400,
            details={"plugin_id": plugin_id},
        )


class CircularDependencyError(PlugstoreException):
    """Raised when a new dependency edge would close a cycle."""

    def __init__(self, plugin_id: str | None, dependency_id: str):
        super().__init__(
            message=f"Adding dependency '{dependency_id}' would create a circular dependency",
            error_code="CIRCULAR_DEPENDENCY",
            status_code=409,
            details={"plugin_id": plugin_id, "dependency_id": dependency_id},
        )


class DuplicateDependencyError(PlugstoreException):
    """Raised when the dependency edge already exists."""

    def __init__(self, plugin_id: str, dependency_id: str):
        super().__init__(
            message="Dependency already exists",
            error_code="DUPLICATE_DEPENDENCY",
            status_code=409,
            details={"plugin_id": plugin_id, "dependency_id": dependency_id},
        )


class DependencyEdgeNotFoundError(PlugstoreException):
    """Raised when removing a dependency edge that does not exist."""

    def __init__(self, plugin_id: str, dependency_id: str):
        super().__init__(
            message="Dependency does not exist",
            error_code="DEPENDENCY_EDGE_NOT_FOUND",
            status_code=404,
            details={"plugin_id": plugin_id, "dependency_id": dependency_id},
        )


class DuplicateNameError(PlugstoreException):
    """Raised when a plugin name is already taken."""

    def __init__(self, name: str | None):
        super().__init__(
            message=f"Plugin with name '{name}' already exists",
            error_code="DUPLICATE_NAME",
            status_code=409,
            details={"name": name},
        )


# Releases and files
class ReleaseNotFoundError(PlugstoreException):
    """Raised when a release is not found."""

    def __init__(self, release_id: str):
        super().__init__(
            message=f"Release '{release_id}' not found",
            error_code="RELEASE_NOT_FOUND",
            status_code=404,
            details={"release_id": release_id},
        )


class InvalidReleaseError(PlugstoreException):
    """Raised when release fields fail validation."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=f"Invalid release: {message}",
            error_code="INVALID_RELEASE",
            status_code=400,
            details=details,
        )


class FileNotFoundInStorageError(PlugstoreException):
    """Raised when a stored release file or plugin directory is missing."""

    def __init__(self, path: str):
        super().__init__(
            message="File not found",
            error_code="FILE_NOT_FOUND",
            status_code=404,
            details={"path": path},
        )


class InvalidFilenameError(PlugstoreException):
    """Raised when an uploaded file name is empty or escapes its directory."""

    def __init__(self, filename: str | None):
        super().__init__(
            message=f"Invalid file name '{filename}'",
            error_code="INVALID_FILENAME",
            status_code=400,
            details={"filename": filename},
        )


class FileTooLargeError(PlugstoreException):
    """Raised when a file exceeds the maximum allowed size."""

    def __init__(self, filename: str, size: int, max_size: int):
        super().__init__(
            message=f"File '{filename}' size ({size} bytes) exceeds maximum allowed size ({max_size} bytes)",
            error_code="FILE_TOO_LARGE",
            status_code=413,
            details={"filename": filename, "size": size, "max_size": max_size},
        )


# Users and stars
class UserNotFoundError(PlugstoreException):
    """Raised when a user is not found."""

    def __init__(self, user_ref: str):
        super().__init__(
            message=f"User '{user_ref}' not found",
            error_code="USER_NOT_FOUND",
            status_code=404,
            details={"user": user_ref},
        )


class InvalidUsernameError(PlugstoreException):
    def __init__(self, username: str | None, min_length: int, max_length: int):
        super().__init__(
            message=f"Invalid username: must be {min_length}-{max_length} characters",
            error_code="INVALID_USERNAME",
            status_code=400,
            details={"username": username},
        )


class InvalidEmailError(PlugstoreException):
    def __init__(self, email: str | None, reason: str):
        super().__init__(
            message=f"Invalid email: {reason}",
            error_code="INVALID_EMAIL",
            status_code=400,
            details={"email": email, "reason": reason},
        )


class InvalidTitleError(PlugstoreException):
    def __init__(self, max_length: int):
        super().__init__(
            message=f"Invalid title: must be up to {max_length} characters",
            error_code="INVALID_TITLE",
            status_code=400,
            details={"max_length": max_length},
        )


class InvalidBioError(PlugstoreException):
    def __init__(self, max_length: int):
        super().__init__(
            message=f"Invalid bio: must be up to {max_length} characters",
            error_code="INVALID_BIO",
            status_code=400,
            details={"max_length": max_length},
        )


class DuplicateUserError(PlugstoreException):
    """Raised when a username or email is already registered."""

    def __init__(self, field: str, value: str):
        super().__init__(
            message=f"A user with this {field} already exists",
            error_code="DUPLICATE_USER",
            status_code=409,
            details={"field": field, "value": value},
        )


class AlreadyStarredError(PlugstoreException):
    def __init__(self, user_id: str, plugin_id: str):
        super().__init__(
            message="Plugin already starred by user",
            error_code="ALREADY_STARRED",
            status_code=409,
            details={"user_id": user_id, "plugin_id": plugin_id},
        )


class NotStarredError(PlugstoreException):
    def __init__(self, user_id: str, plugin_id: str):
        super().__init__(
            message="Plugin is not starred by user",
            error_code="NOT_STARRED",
            status_code=404,
            details={"user_id": user_id, "plugin_id": plugin_id},
        )


# Generic
class NotFoundError(PlugstoreException):
    """Generic exception for when a resource is not found."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            error_code="NOT_FOUND",
            status_code=404,
            details=details,
        )


# Authentication
class AuthenticationError(PlugstoreException):
    """Raised when authentication fails."""

    def __init__(self, message: str = "Authentication failed", details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            error_code="AUTHENTICATION_ERROR",
            status_code=401,
            details=details,
        )


class AuthorizationError(PlugstoreException):
    """Raised when the caller is authenticated but not allowed."""

    def __init__(self, message: str = "Authorization failed", details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            error_code="AUTHORIZATION_ERROR",
            status_code=403,
            details=details,
        )


class ConfigurationError(PlugstoreException):
    """Raised when a required setting is missing at request time."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            error_code="CONFIGURATION_ERROR",
            status_code=500,
            details=details,
        )


# Store failures
class InternalError(PlugstoreException):
    """Raised when the store fails in a way no other error kind describes."""

    def __init__(self, operation: str, reason: str | None = None):
        super().__init__(
            message=f"Internal error during {operation}",
            error_code="INTERNAL_ERROR",
            status_code=500,
            details={"operation": operation, "reason": reason} if reason else {"operation": operation},
        )


class DatabaseConnectionError(PlugstoreException):
    """Raised when there's a database connection error (network, auth, etc.)."""

    def __init__(self, reason: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=f"Database connection error: {reason}",
            error_code="DATABASE_CONNECTION_ERROR",
            status_code=503,
            details=details or {"reason": reason},
        )


class DatabaseSessionError(PlugstoreException):
    """Raised when there's an error with database session management."""

    def __init__(self, reason: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=f"Database session error: {reason}",
            error_code="DATABASE_SESSION_ERROR",
            status_code=500,
            details=details or {"reason": reason},
        )
