"""Tests for the unified import exception taxonomy.

Validates:
- ParcelImportError hierarchy and structured attributes
- Category classification (contract, format, validation, authorization,
  transient, permanent)
- ``to_error_dict()`` produces stable payload keys
- Every activity/store exception is a ParcelImportError with a default
  stage and code
"""

from __future__ import annotations

from typing import ClassVar

from parcel_import.activities.decode_container import (
    CorruptContainerError,
    NoKmlInArchiveError,
    UnsupportedFormatError,
    UploadTooLargeError,
)
from parcel_import.activities.extract_parcels import ExtractionError
from parcel_import.activities.parse_geojson import InvalidGeoJsonError
from parcel_import.activities.parse_kml import MalformedKmlError
from parcel_import.core.config import ConfigValidationError
from parcel_import.core.exceptions import (
    AuthorizationError,
    ContractError,
    FormatError,
    ParcelImportError,
    PermanentError,
    ProjectNotFoundError,
    SubscriptionNotFoundError,
    TransientError,
    UnauthenticatedError,
    ValidationError,
)
from parcel_import.models.catalog import CatalogError
from parcel_import.orchestrators.import_pipeline import EmptyDocumentError
from parcel_import.stores.base import PersistenceError


class TestParcelImportErrorBase:
    """ParcelImportError base class behavior."""

    def test_default_attributes(self) -> None:
        err = ParcelImportError("boom")
        assert err.message == "boom"
        assert err.stage == ""
        assert err.code == ""
        assert err.retryable is False
        assert err.correlation_id == ""

    def test_custom_attributes(self) -> None:
        err = ParcelImportError(
            "fail",
            stage="persist",
            code="PARCEL_CREATE_FAILED",
            retryable=True,
            correlation_id="imp-123",
        )
        assert err.stage == "persist"
        assert err.code == "PARCEL_CREATE_FAILED"
        assert err.retryable is True
        assert err.correlation_id == "imp-123"

    def test_str_is_message(self) -> None:
        assert str(ParcelImportError("human-readable error")) == "human-readable error"

    def test_to_error_dict_keys(self) -> None:
        err = ParcelImportError("x", stage="s", code="C", retryable=True, correlation_id="id")
        d = err.to_error_dict()
        assert set(d.keys()) == {
            "category",
            "code",
            "stage",
            "message",
            "retryable",
            "correlation_id",
        }
        assert d["category"] == "transient"
        assert d["correlation_id"] == "id"


class TestCategoryBases:
    """Category base classes set correct defaults."""

    def test_validation_error_not_retryable(self) -> None:
        err = ValidationError("bad input")
        assert err.retryable is False
        assert err.category == "validation"

    def test_format_error_is_validation_error(self) -> None:
        err = FormatError("not a zip")
        assert isinstance(err, ValidationError)
        assert err.category == "format"

    def test_authorization_error_stage(self) -> None:
        err = AuthorizationError("nope")
        assert err.stage == "authorize"
        assert err.category == "authorization"

    def test_transient_error_retryable(self) -> None:
        err = TransientError("timeout")
        assert err.retryable is True
        assert err.category == "transient"

    def test_permanent_error_not_retryable(self) -> None:
        err = PermanentError("gone")
        assert err.retryable is False
        assert err.category == "permanent"

    def test_contract_error_not_retryable(self) -> None:
        err = ContractError("missing field")
        assert err.retryable is False
        assert err.category == "contract"

    def test_dynamic_category_from_retryable(self) -> None:
        assert ParcelImportError("x", retryable=True).category == "transient"
        assert ParcelImportError("x", retryable=False).category == "permanent"


class TestAllExceptionsAreParcelImportError:
    """Every custom exception inherits from ParcelImportError."""

    EXCEPTION_CLASSES: ClassVar[list[type[ParcelImportError]]] = [
        UnsupportedFormatError,
        CorruptContainerError,
        NoKmlInArchiveError,
        UploadTooLargeError,
        MalformedKmlError,
        InvalidGeoJsonError,
        EmptyDocumentError,
        ExtractionError,
        PersistenceError,
        ConfigValidationError,
        CatalogError,
        UnauthenticatedError,
        ProjectNotFoundError,
        SubscriptionNotFoundError,
    ]

    def test_all_subclass_parcel_import_error(self) -> None:
        for cls in self.EXCEPTION_CLASSES:
            assert issubclass(cls, ParcelImportError), f"{cls.__name__} is not a ParcelImportError"

    def test_format_failures_are_format_errors(self) -> None:
        for cls in (
            UnsupportedFormatError,
            CorruptContainerError,
            NoKmlInArchiveError,
            UploadTooLargeError,
            MalformedKmlError,
            InvalidGeoJsonError,
            EmptyDocumentError,
        ):
            assert issubclass(cls, FormatError), f"{cls.__name__} is not a FormatError"


class TestStageAndCode:
    """Every concrete exception has a default stage and code."""

    def test_unsupported_format(self) -> None:
        err = UnsupportedFormatError("parcels.shp")
        assert err.stage == "decode_container"
        assert err.code == "UNSUPPORTED_FORMAT"

    def test_no_kml_in_archive(self) -> None:
        err = NoKmlInArchiveError("empty kmz")
        assert err.stage == "decode_container"
        assert err.code == "NO_KML_IN_ARCHIVE"

    def test_malformed_kml(self) -> None:
        err = MalformedKmlError("bad xml")
        assert err.stage == "parse_kml"
        assert err.code == "MALFORMED_KML"

    def test_invalid_geojson(self) -> None:
        err = InvalidGeoJsonError("no features")
        assert err.stage == "parse_geojson"
        assert err.code == "INVALID_GEOJSON"

    def test_extraction_error(self) -> None:
        err = ExtractionError("no geometry")
        assert err.stage == "extract_parcels"
        assert err.code == "FEATURE_EXTRACTION_FAILED"
        assert err.category == "permanent"

    def test_persistence_error_is_transient(self) -> None:
        err = PersistenceError("db down", sequence=4)
        assert err.stage == "persist"
        assert err.code == "PARCEL_CREATE_FAILED"
        assert err.retryable is True
        assert err.sequence == 4

    def test_authorization_codes(self) -> None:
        assert UnauthenticatedError().code == "UNAUTHENTICATED"
        assert ProjectNotFoundError().code == "PROJECT_NOT_FOUND"
        assert SubscriptionNotFoundError().code == "SUBSCRIPTION_NOT_FOUND"

    def test_config_validation_error(self) -> None:
        err = ConfigValidationError("PARCEL_MAX_UPLOAD_BYTES", 0, "must be > 0")
        assert err.stage == "config"
        assert err.code == "CONFIG_VALIDATION_FAILED"
        assert err.key == "PARCEL_MAX_UPLOAD_BYTES"
        assert err.value == 0
        assert "PARCEL_MAX_UPLOAD_BYTES" in str(err)

    def test_catalog_error(self) -> None:
        err = CatalogError("bad yaml")
        assert err.stage == "config"
        assert err.code == "FIELD_CATALOG_INVALID"
