"""Field validation for plugin create/update requests."""

from collections.abc import Iterable

from ..core.exceptions import (
    InvalidDescriptionError,
    InvalidLicenseError,
    InvalidNameError,
    InvalidPlatformError,
    InvalidTagsError,
)
from ..models.plugin import (
    ALL_TAGS,
    DESCRIPTION_MAX_LENGTH,
    NAME_MAX_LENGTH,
    NAME_MIN_LENGTH,
    VALID_LICENSES,
    VALID_PLATFORMS,
)


def validate_name(name: str | None) -> str:
    if name is None or not (NAME_MIN_LENGTH <= len(name) <= NAME_MAX_LENGTH):
        raise InvalidNameError(name, NAME_MIN_LENGTH, NAME_MAX_LENGTH)
    return name


def validate_description(description: str | None) -> str | None:
    if description is not None and len(description) > DESCRIPTION_MAX_LENGTH:
        raise InvalidDescriptionError(len(description), DESCRIPTION_MAX_LENGTH)
    return description


def validate_license(license_name: str | None) -> str:
    if license_name not in VALID_LICENSES:
        raise InvalidLicenseError(license_name, VALID_LICENSES)
    return license_name


def validate_platforms(platforms: Iterable[str] | None) -> list[str]:
    """Non-empty subset of the known platforms, order kept, duplicates collapsed."""
    unique = list(dict.fromkeys(platforms or []))
    if not unique:
        raise InvalidPlatformError([], VALID_PLATFORMS)
    invalid = [p for p in unique if p not in VALID_PLATFORMS]
    if invalid:
        raise InvalidPlatformError(invalid, VALID_PLATFORMS)
    return unique


def validate_tags(tags: Iterable[str] | None) -> list[str]:
    """Subset of the tag vocabulary. Unknown tags are reported, never dropped."""
    unique = list(dict.fromkeys(tags or []))
    invalid = [t for t in unique if t not in ALL_TAGS]
    if invalid:
        raise InvalidTagsError(invalid, ALL_TAGS)
    return unique


def validate_plugin_fields(
    name: str | None,
    description: str | None,
    license_name: str | None,
    platforms: Iterable[str] | None,
    tags: Iterable[str] | None,
) -> tuple[list[str], list[str]]:
    """Run every creation check in order; return normalized (platforms, tags)."""
    validate_name(name)
    validate_description(description)
    validate_license(license_name)
    return validate_platforms(platforms), validate_tags(tags)
