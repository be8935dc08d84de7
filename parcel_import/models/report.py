"""Pydantic model for the result of one import request.

The report is the response body of the upload endpoint and is never
stored. Field aliases match the JSON keys the dashboard reads
(``parcelsCreated`` rather than ``parcels_created``).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from parcel_import.core.exceptions import ParcelImportError


class ImportReport(BaseModel):
    """Outcome of one import call.

    Attributes:
        success: ``True`` when at least one parcel record was extracted.
        parcels_created: Records actually written to the parcel store.
        errors: User-facing error strings, in the order they occurred.
        warnings: User-facing warning strings, in the order they occurred.
        details: Diagnostic text for format failures (exception message).
        code: Machine-readable failure code; set only when the import was
            abandoned before extraction.
    """

    model_config = ConfigDict(populate_by_name=True)

    success: bool = False
    parcels_created: int = Field(default=0, alias="parcelsCreated", ge=0)
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    details: str | None = None
    code: str | None = None

    @property
    def aborted(self) -> bool:
        """Whether the import stopped at the container/format stage."""
        return self.code is not None

    @classmethod
    def failed(cls, message: str, error: ParcelImportError | None = None) -> ImportReport:
        """Build the single-error report for a fatal container/format failure."""
        return cls(
            success=False,
            parcels_created=0,
            errors=[message],
            details=error.message if error is not None else None,
            code=(error.code if error is not None else None) or "IMPORT_ABORTED",
        )

    def to_response(self) -> dict[str, Any]:
        """Serialise for the HTTP response body."""
        return self.model_dump(by_alias=True, exclude_none=True)
