"""Import configuration loaded from environment variables.

All values have defaults suitable for local development; Azure Functions
app settings (or ``local.settings.json``) are the source of truth in a
deployment.

Fail-fast validation:
    ``from_env()`` raises ``ConfigValidationError`` if any numeric value
    is out of its valid range, so bad settings surface at startup rather
    than halfway through an import.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from parcel_import.core.exceptions import ParcelImportError

DEFAULT_MAX_UPLOAD_BYTES = 50 * 1024 * 1024
DEFAULT_MAX_ARCHIVE_ENTRY_BYTES = 200 * 1024 * 1024
DEFAULT_FEATURE_SAMPLE_CHARS = 200


class ConfigValidationError(ParcelImportError):
    """Raised when configuration values are out of valid range.

    Attributes:
        key: The configuration key that failed validation.
        value: The invalid value.
        message: Formatted error including the key and the valid range.
    """

    default_stage = "config"
    default_code = "CONFIG_VALIDATION_FAILED"

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Invalid configuration {key}={value!r}: {message}")


@dataclass(frozen=True, slots=True)
class ImportConfig:
    """Immutable import configuration.

    Loaded once at function startup and threaded through the orchestrator.

    Attributes:
        field_catalog_path: YAML field catalog to load. Empty means the
            catalog packaged with ``parcel_import``.
        default_profile: Import profile used when the request names none.
        max_upload_bytes: Largest accepted upload body.
        max_archive_entry_bytes: Largest uncompressed KML entry read from a KMZ.
        feature_sample_chars: Length of the raw-properties sample logged at
            DEBUG for each feature (0 disables the sample).
    """

    field_catalog_path: str = ""
    default_profile: str = "default"
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    max_archive_entry_bytes: int = DEFAULT_MAX_ARCHIVE_ENTRY_BYTES
    feature_sample_chars: int = DEFAULT_FEATURE_SAMPLE_CHARS

    @classmethod
    def from_env(cls) -> ImportConfig:
        """Load and validate configuration from environment variables.

        Raises:
            ConfigValidationError: If a value is out of range or a required
                string value is empty.
            ValueError: If a numeric environment variable cannot be parsed
                (e.g. ``PARCEL_MAX_UPLOAD_BYTES=abc``).
        """
        config = cls(
            field_catalog_path=os.getenv("PARCEL_FIELD_CATALOG_PATH", ""),
            default_profile=os.getenv("PARCEL_IMPORT_PROFILE", "default"),
            max_upload_bytes=int(
                os.getenv("PARCEL_MAX_UPLOAD_BYTES", str(DEFAULT_MAX_UPLOAD_BYTES))
            ),
            max_archive_entry_bytes=int(
                os.getenv("PARCEL_MAX_ARCHIVE_ENTRY_BYTES", str(DEFAULT_MAX_ARCHIVE_ENTRY_BYTES))
            ),
            feature_sample_chars=int(
                os.getenv("PARCEL_FEATURE_SAMPLE_CHARS", str(DEFAULT_FEATURE_SAMPLE_CHARS))
            ),
        )
        _validate(config)
        return config


def _validate(config: ImportConfig) -> None:
    """Validate configuration ranges.  Raises ``ConfigValidationError``."""
    if not config.default_profile.strip():
        raise ConfigValidationError(
            "PARCEL_IMPORT_PROFILE",
            config.default_profile,
            "must not be empty",
        )

    if config.max_upload_bytes <= 0:
        raise ConfigValidationError(
            "PARCEL_MAX_UPLOAD_BYTES",
            config.max_upload_bytes,
            "must be > 0 (bytes)",
        )

    if config.max_archive_entry_bytes <= 0:
        raise ConfigValidationError(
            "PARCEL_MAX_ARCHIVE_ENTRY_BYTES",
            config.max_archive_entry_bytes,
            "must be > 0 (bytes)",
        )

    if config.feature_sample_chars < 0:
        raise ConfigValidationError(
            "PARCEL_FEATURE_SAMPLE_CHARS",
            config.feature_sample_chars,
            "must be >= 0 (characters)",
        )
