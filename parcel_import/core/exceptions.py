"""Import error taxonomy.

All domain exceptions derive from ``ParcelImportError``. Each carries the
import stage it was raised in, a machine-readable code and a retry hint,
so the orchestrator and the HTTP layer can decide how far a failure
reaches without inspecting message text:

======================  ==================================================
Category                Reach
======================  ==================================================
``ContractError``       the request itself is malformed
``FormatError``         the uploaded file is unusable; aborts the import
``ValidationError``     input violates a domain rule
``AuthorizationError``  caller may not import into the project; raised
                        before the file is parsed
``TransientError``      a collaborator failed; a retry may succeed
``PermanentError``      the failure will repeat on retry
======================  ==================================================

``to_error_dict()`` gives a stable payload for structured logging.
"""

from __future__ import annotations


class ParcelImportError(Exception):
    """Base exception for all import-domain errors.

    Attributes:
        message: Human-readable error description.
        stage: Import stage that raised (``"decode_container"``, ``"persist"``...).
        code: Machine-readable error code (``"NO_KML_IN_ARCHIVE"``...).
        retryable: Whether resubmitting the same request may succeed.
        correlation_id: Import request identifier.
    """

    default_stage: str = ""
    default_code: str = ""
    default_retryable: bool = False
    #: Fixed category for category base classes; empty means derive from ``retryable``.
    category_name: str = ""

    def __init__(
        self,
        message: str = "",
        *,
        stage: str = "",
        code: str = "",
        retryable: bool | None = None,
        correlation_id: str = "",
    ) -> None:
        super().__init__(message)
        self.message = message
        self.stage = stage or self.default_stage
        self.code = code or self.default_code
        self.retryable = self.default_retryable if retryable is None else retryable
        self.correlation_id = correlation_id

    @property
    def category(self) -> str:
        if self.category_name:
            return self.category_name
        return "transient" if self.retryable else "permanent"

    def to_error_dict(self) -> dict[str, object]:
        """Structured payload with stable keys."""
        return {
            "category": self.category,
            "code": self.code,
            "stage": self.stage,
            "message": self.message,
            "retryable": self.retryable,
            "correlation_id": self.correlation_id,
        }


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


class ValidationError(ParcelImportError):
    """Input violates a domain rule. Never retryable."""

    category_name = "validation"


class FormatError(ValidationError):
    """The upload cannot be decoded into a feature collection.

    Fatal to the whole import: no parcels are created.
    """

    category_name = "format"


class AuthorizationError(ParcelImportError):
    """Caller is not allowed to import into the target project."""

    category_name = "authorization"
    default_stage = "authorize"


class TransientError(ParcelImportError):
    """A collaborator failed temporarily."""

    category_name = "transient"
    default_retryable = True


class PermanentError(ParcelImportError):
    """Unrecoverable domain failure."""

    category_name = "permanent"


class ContractError(ParcelImportError):
    """Malformed request or payload shape."""

    category_name = "contract"


# ---------------------------------------------------------------------------
# Authorization
# ---------------------------------------------------------------------------


class UnauthenticatedError(AuthorizationError):
    """No caller identity accompanied the request."""

    default_code = "UNAUTHENTICATED"


class ProjectNotFoundError(AuthorizationError):
    """Project does not exist or belongs to someone else."""

    default_code = "PROJECT_NOT_FOUND"


class SubscriptionNotFoundError(AuthorizationError):
    """Caller has no subscription, so no parcel limit applies."""

    default_code = "SUBSCRIPTION_NOT_FOUND"
