"""Container decoding activity.

Turns raw upload bytes into a document the next stage can parse,
chosen by file extension:

- ``.kml``              → UTF-8 KML text
- ``.kmz``              → UTF-8 text of the first ``.kml`` entry in the zip
- ``.geojson``/``.json`` → UTF-8 GeoJSON text

Pure transform: nothing is written anywhere. Corrupt archives and bad
encodings are never silently accepted; the original exception message
travels with the raised ``FormatError`` so the caller can report it.
"""

from __future__ import annotations

import enum
import io
import logging
import zipfile
import zlib
from dataclasses import dataclass

from parcel_import.core.config import DEFAULT_MAX_ARCHIVE_ENTRY_BYTES
from parcel_import.core.constants import (
    GEOJSON_EXTENSIONS,
    KML_EXTENSION,
    KMZ_EXTENSION,
    SUPPORTED_EXTENSIONS,
)
from parcel_import.core.exceptions import FormatError

logger = logging.getLogger("parcel_import.activities.decode_container")


class ContainerDecodeError(FormatError):
    """Raised when an upload cannot be decoded into document text."""

    default_stage = "decode_container"
    default_code = "CONTAINER_DECODE_FAILED"


class UnsupportedFormatError(ContainerDecodeError):
    """Raised when the file extension is not one of the supported formats."""

    default_code = "UNSUPPORTED_FORMAT"


class CorruptContainerError(ContainerDecodeError):
    """Raised for unreadable zip archives or text that is not valid UTF-8."""

    default_code = "CORRUPT_CONTAINER"


class NoKmlInArchiveError(ContainerDecodeError):
    """Raised when a KMZ archive holds no ``.kml`` entry."""

    default_code = "NO_KML_IN_ARCHIVE"


class UploadTooLargeError(ContainerDecodeError):
    """Raised when an upload or archive entry exceeds the configured size."""

    default_code = "UPLOAD_TOO_LARGE"


class DocumentFormat(enum.Enum):
    """Which parser the decoded text needs."""

    KML = "kml"
    GEOJSON = "geojson"


@dataclass(frozen=True, slots=True)
class GeoDocumentSource:
    """Decoded, not yet parsed, geospatial document.

    Attributes:
        format: ``KML`` (needs translation) or ``GEOJSON`` (parse directly).
        text: Decoded document text.
        source_name: Upload name, or ``"<upload>!<entry>"`` for KMZ entries.
    """

    format: DocumentFormat
    text: str
    source_name: str = ""


def decode_container(
    file_bytes: bytes,
    file_name: str,
    *,
    max_archive_entry_bytes: int = DEFAULT_MAX_ARCHIVE_ENTRY_BYTES,
) -> GeoDocumentSource:
    """Decode an uploaded file into KML or GeoJSON text.

    Args:
        file_bytes: Raw upload body.
        file_name: Declared upload name; only its extension is used.
        max_archive_entry_bytes: Upper bound on the uncompressed size of the
            KML entry read from a KMZ archive.

    Returns:
        A ``GeoDocumentSource`` describing the decoded text.

    Raises:
        UnsupportedFormatError: If the extension is not supported.
        CorruptContainerError: If the zip or the text encoding is invalid.
        NoKmlInArchiveError: If a KMZ holds no ``.kml`` entry.
        UploadTooLargeError: If the KMZ entry exceeds the size bound.
    """
    lowered = file_name.lower()

    if lowered.endswith(KML_EXTENSION):
        text = _decode_text(file_bytes, file_name)
        logger.info("Decoded KML upload | file=%s | chars=%d", file_name, len(text))
        return GeoDocumentSource(DocumentFormat.KML, text, file_name)

    if lowered.endswith(KMZ_EXTENSION):
        return _decode_kmz(file_bytes, file_name, max_archive_entry_bytes)

    if lowered.endswith(GEOJSON_EXTENSIONS):
        text = _decode_text(file_bytes, file_name)
        logger.info("Decoded GeoJSON upload | file=%s | chars=%d", file_name, len(text))
        return GeoDocumentSource(DocumentFormat.GEOJSON, text, file_name)

    msg = (
        f"Unsupported file extension for {file_name!r}; "
        f"allowed: {', '.join(SUPPORTED_EXTENSIONS)}"
    )
    raise UnsupportedFormatError(msg)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _decode_text(data: bytes, name: str) -> str:
    """Decode UTF-8 (a leading byte-order mark is dropped)."""
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        msg = f"{name} is not valid UTF-8 text: {exc}"
        raise CorruptContainerError(msg) from exc


def _decode_kmz(data: bytes, file_name: str, max_entry_bytes: int) -> GeoDocumentSource:
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            entry = next(
                (info for info in archive.infolist() if info.filename.lower().endswith(".kml")),
                None,
            )
            if entry is None:
                msg = f"No .kml entry in KMZ archive {file_name!r}"
                raise NoKmlInArchiveError(msg)

            if entry.file_size > max_entry_bytes:
                msg = (
                    f"KML entry {entry.filename!r} in {file_name!r} is {entry.file_size} bytes "
                    f"uncompressed (limit {max_entry_bytes})"
                )
                raise UploadTooLargeError(msg)

            logger.info(
                "Found KML entry in archive | file=%s | entry=%s | bytes=%d",
                file_name,
                entry.filename,
                entry.file_size,
            )
            raw = archive.read(entry)
    except (zipfile.BadZipFile, zipfile.LargeZipFile, zlib.error, OSError, EOFError) as exc:
        msg = f"Cannot read KMZ archive {file_name!r}: {exc}"
        raise CorruptContainerError(msg) from exc

    source_name = f"{file_name}!{entry.filename}"
    return GeoDocumentSource(DocumentFormat.KML, _decode_text(raw, source_name), source_name)
