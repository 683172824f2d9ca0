"""Error taxonomy for the projection service."""

from __future__ import annotations

from dataclasses import asdict, dataclass


@dataclass(slots=True, frozen=True)
class FieldError:
    """A single rejected field in an inbound payload."""

    field: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


class ProjectionValidationError(ValueError):
    """Inbound projection payload could not be normalized.

    Carries every field-level problem found, not just the first one.
    """

    def __init__(self, errors: list[FieldError]):
        self.errors = errors
        summary = ", ".join(f"{e.field}: {e.message}" for e in errors[:5])
        if len(errors) > 5:
            summary += f" (+{len(errors) - 5} more)"
        super().__init__(f"Invalid projection data: {summary}")

    @property
    def fields(self) -> list[str]:
        return [e.field for e in self.errors]

    def to_list(self) -> list[dict[str, str]]:
        return [e.to_dict() for e in self.errors]


class StorageUnavailableError(RuntimeError):
    """The database could not be reached or refused the operation."""


class SalesforceError(RuntimeError):
    """A Salesforce API call failed."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class EmailDeliveryError(RuntimeError):
    """The SMTP server rejected or could not accept a message."""
