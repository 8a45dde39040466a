"""Exceptions raised by the bookshelf core and its HTTP boundary."""

from __future__ import annotations

from collections.abc import Iterable


class BookshelfError(Exception):
    """Base class for every error surfaced to a request."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(BookshelfError):
    """Input failed its declared constraints."""

    status_code = 400

    def __init__(
        self,
        violations: Iterable[tuple[str, str]],
        message: str = "Validation failed",
    ) -> None:
        super().__init__(message)
        self.violations = [
            {"property_path": path, "message": text} for path, text in violations
        ]


class UnsupportedVersionError(ValidationError):
    """The requested response version cannot be ordered."""

    status_code = 406

    def __init__(self, version: str) -> None:
        super().__init__(
            [("version", f"Unsupported version {version!r}")],
            message=f"Unsupported version {version!r}",
        )
        self.version = version


class NotFoundError(BookshelfError):
    """A referenced entity does not exist."""

    status_code = 404

    def __init__(self, kind: str, id: object) -> None:
        super().__init__(f"{kind} {id} not found")
        self.kind = kind
        self.id = id


class PermissionDeniedError(BookshelfError):
    """The caller lacks the role an endpoint requires."""

    status_code = 403


class ComputeError(BookshelfError):
    """A cache compute function failed; nothing was stored."""

    status_code = 503

    def __init__(self, key: str) -> None:
        super().__init__(f"Failed to compute cache entry {key!r}")
        self.key = key


class FieldResolutionError(BookshelfError):
    """A projected field could not be read from its entity."""

    status_code = 500

    def __init__(self, field: str) -> None:
        super().__init__(f"Cannot resolve field {field!r}")
        self.field = field
