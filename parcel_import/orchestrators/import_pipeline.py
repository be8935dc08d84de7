"""Import orchestrator for one uploaded parcel file.

Drives an import request through its one-way stages::

    RECEIVED → DECODED → TRANSLATED → EXTRACTED → PERSISTED → REPORTED

1. Decode the container (KML / KMZ / GeoJSON) by extension.
2. Translate KML to GeoJSON, or parse GeoJSON directly.
3. Extract canonical parcel records per feature, applying the quota.
4. Persist each record; a rejected record is reported, not fatal.
5. Assemble the ``ImportReport``.

Container and format failures abort the call with a single error and
no parcels. Anything that can be pinned to one feature or one record is
reported and the rest of the batch carries on. There is no retry in
place: a failed import is retried by submitting a new request.

Concurrency:
    ``import_parcels`` holds a per-project lock from the moment the
    quota and max-sequence snapshot is read until the last record is
    persisted, so two imports into the same project in this process
    cannot hand out overlapping sequence numbers or overrun the quota.
    The lock is process-local; a store shared by several processes needs
    a transactional sequence assignment to close the same race.

Cancellation:
    Records persisted before a client disconnect stay persisted; there
    is no compensating rollback.
"""

from __future__ import annotations

import contextlib
import enum
import logging
import threading
import uuid
from typing import TYPE_CHECKING

from parcel_import.activities.decode_container import (
    DocumentFormat,
    NoKmlInArchiveError,
    UnsupportedFormatError,
    UploadTooLargeError,
    decode_container,
)
from parcel_import.activities.extract_parcels import extract_parcels
from parcel_import.activities.parse_geojson import load_feature_collection
from parcel_import.activities.parse_kml import kml_to_geojson
from parcel_import.core.config import ImportConfig
from parcel_import.core.constants import (
    MSG_NO_FEATURES,
    MSG_NO_KML_IN_ARCHIVE,
    MSG_NO_VALID_PARCELS,
    MSG_PARSE_FAILED,
    MSG_UNSUPPORTED_FORMAT,
    MSG_UPLOAD_TOO_LARGE,
)
from parcel_import.core.exceptions import (
    FormatError,
    ProjectNotFoundError,
    SubscriptionNotFoundError,
)
from parcel_import.models.catalog import CatalogError, FieldCatalog, load_field_catalog
from parcel_import.models.quota import QuotaState
from parcel_import.models.report import ImportReport
from parcel_import.stores.base import PersistenceError

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from parcel_import.models.feature import GeoDocument
    from parcel_import.models.parcel import ParcelRecord
    from parcel_import.stores.base import ParcelStore, ProjectStore

logger = logging.getLogger("parcel_import.orchestrators.import_pipeline")


class ImportStage(enum.Enum):
    """One-way stages of a single import call."""

    RECEIVED = "received"
    DECODED = "decoded"
    TRANSLATED = "translated"
    EXTRACTED = "extracted"
    PERSISTED = "persisted"
    REPORTED = "reported"


class EmptyDocumentError(FormatError):
    """Raised when a decoded document contains no features at all."""

    default_stage = "parse_features"
    default_code = "NO_FEATURES"


# ---------------------------------------------------------------------------
# Per-project serialization
# ---------------------------------------------------------------------------


class ProjectLocks:
    """Registry of one ``threading.Lock`` per project id.

    An entry lives only while some caller holds or waits on it.
    """

    def __init__(self) -> None:
        self._locks: dict[str, threading.Lock] = {}
        self._holders: dict[str, int] = {}
        self._guard = threading.Lock()

    @contextlib.contextmanager
    def hold(self, project_id: str) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(project_id, threading.Lock())
            self._holders[project_id] = self._holders.get(project_id, 0) + 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._holders[project_id] -= 1
                if not self._holders[project_id]:
                    del self._holders[project_id]
                    del self._locks[project_id]

    def active(self) -> int:
        """Number of projects currently held or waited on."""
        with self._guard:
            return len(self._locks)


_PROJECT_LOCKS = ProjectLocks()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def import_parcels(
    file_bytes: bytes,
    file_name: str,
    project_id: str,
    owner_id: str,
    *,
    project_store: ProjectStore,
    parcel_store: ParcelStore,
    profile: str | None = None,
    config: ImportConfig | None = None,
    catalog: FieldCatalog | None = None,
    import_id: str = "",
    locks: ProjectLocks | None = None,
) -> ImportReport:
    """Authorize the caller, then import into the project under its lock.

    Ownership and subscription are checked before the file is looked at.

    Raises:
        ProjectNotFoundError: If the project does not exist or is not
            owned by *owner_id*.
        SubscriptionNotFoundError: If the caller has no subscription.
    """
    import_id = import_id or uuid.uuid4().hex

    with (locks or _PROJECT_LOCKS).hold(project_id):
        project = project_store.get_project_with_parcel_count(project_id, owner_id)
        if project is None:
            msg = "Project not found or unauthorized"
            raise ProjectNotFoundError(msg, correlation_id=import_id)

        limits = project_store.get_subscription_limits(owner_id)
        if limits is None:
            msg = "No subscription found"
            raise SubscriptionNotFoundError(msg, correlation_id=import_id)

        return run_import(
            file_bytes,
            file_name,
            project_id,
            QuotaState.for_project(project, limits),
            parcel_store,
            profile=profile,
            config=config,
            catalog=catalog,
            import_id=import_id,
        )


def run_import(
    file_bytes: bytes,
    file_name: str,
    project_id: str,
    quota: QuotaState,
    parcel_store: ParcelStore,
    *,
    profile: str | None = None,
    config: ImportConfig | None = None,
    catalog: FieldCatalog | None = None,
    import_id: str = "",
) -> ImportReport:
    """Import one uploaded file into a project.

    Args:
        file_bytes: Raw upload body.
        file_name: Declared upload name (selects the decoder).
        project_id: Target project.
        quota: Existing count, limit, tier and max sequence for the project.
        parcel_store: Where extracted records are written.
        profile: Import profile name; ``config.default_profile`` if ``None``.
        config: Import configuration (defaults when ``None``).
        catalog: Field catalog (loaded from ``config`` when ``None``).
        import_id: Request identifier for logs (generated when empty).

    Returns:
        The ``ImportReport``. ``success`` is ``True`` when at least one
        record was extracted; ``code`` is set only when the import was
        abandoned at the container/format stage.
    """
    config = config or ImportConfig()
    import_id = import_id or uuid.uuid4().hex
    _advance(import_id, ImportStage.RECEIVED, file=file_name, bytes=len(file_bytes))

    catalog = catalog or load_field_catalog(config.field_catalog_path)
    try:
        import_profile = catalog.profile(profile or config.default_profile)
    except CatalogError as exc:
        logger.warning("Import rejected | import_id=%s | error=%s", import_id, exc)
        return ImportReport.failed(exc.message, exc)

    try:
        document = load_document(file_bytes, file_name, config=config, import_id=import_id)
    except FormatError as exc:
        logger.warning(
            "Import aborted | import_id=%s | stage=%s | code=%s | error=%s",
            import_id,
            exc.stage,
            exc.code,
            exc,
        )
        return _report(import_id, ImportReport.failed(_format_message(exc), exc))

    batch = extract_parcels(
        document.features,
        project_id,
        quota,
        catalog=catalog,
        profile=import_profile,
        import_id=import_id,
        sample_chars=config.feature_sample_chars,
    )
    _advance(import_id, ImportStage.EXTRACTED, records=len(batch.records))

    if not batch.records:
        return _report(
            import_id,
            ImportReport(
                success=False,
                parcels_created=0,
                errors=batch.errors or [MSG_NO_VALID_PARCELS],
                warnings=batch.warnings,
            ),
        )

    created, persist_errors = persist_records(batch.records, parcel_store, import_id=import_id)
    _advance(import_id, ImportStage.PERSISTED, created=created, failed=len(persist_errors))

    return _report(
        import_id,
        ImportReport(
            success=True,
            parcels_created=created,
            errors=[*batch.errors, *persist_errors],
            warnings=batch.warnings,
        ),
    )


def load_document(
    file_bytes: bytes,
    file_name: str,
    *,
    config: ImportConfig | None = None,
    import_id: str = "",
) -> GeoDocument:
    """Decode and translate an upload into a non-empty ``GeoDocument``.

    Raises:
        FormatError: Any container, encoding, KML or GeoJSON failure, or a
            document without features.
    """
    config = config or ImportConfig()

    if len(file_bytes) > config.max_upload_bytes:
        msg = f"{file_name} is {len(file_bytes)} bytes (limit {config.max_upload_bytes})"
        raise UploadTooLargeError(msg)

    source = decode_container(
        file_bytes,
        file_name,
        max_archive_entry_bytes=config.max_archive_entry_bytes,
    )
    _advance(import_id, ImportStage.DECODED, format=source.format.value)

    if source.format is DocumentFormat.KML:
        document = kml_to_geojson(source.text, source_name=source.source_name)
    else:
        document = load_feature_collection(source.text, source_name=source.source_name)
    _advance(import_id, ImportStage.TRANSLATED, features=len(document))

    if not document.features:
        msg = f"{file_name} contains no features"
        raise EmptyDocumentError(msg)

    return document


def persist_records(
    records: Sequence[ParcelRecord],
    parcel_store: ParcelStore,
    *,
    import_id: str = "",
) -> tuple[int, list[str]]:
    """Write each record; a rejected record is reported, not fatal.

    Returns:
        ``(created_count, error_messages)``.
    """
    created = 0
    errors: list[str] = []
    for record in records:
        try:
            parcel_store.create_parcel(record)
        except PersistenceError as exc:
            logger.warning(
                "Parcel create failed | import_id=%s | sequence=%d | code=%s | error=%s",
                import_id,
                record.sequence,
                exc.code,
                exc,
            )
            errors.append(f"Failed to create parcel at sequence {record.sequence}")
        except Exception:
            logger.exception(
                "Unexpected parcel create failure | import_id=%s | sequence=%d",
                import_id,
                record.sequence,
            )
            errors.append(f"Failed to create parcel at sequence {record.sequence}")
        else:
            created += 1
    return created, errors


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _format_message(exc: FormatError) -> str:
    if isinstance(exc, UnsupportedFormatError):
        return MSG_UNSUPPORTED_FORMAT
    if isinstance(exc, NoKmlInArchiveError):
        return MSG_NO_KML_IN_ARCHIVE
    if isinstance(exc, UploadTooLargeError):
        return MSG_UPLOAD_TOO_LARGE
    if isinstance(exc, EmptyDocumentError):
        return MSG_NO_FEATURES
    return MSG_PARSE_FAILED


def _advance(import_id: str, stage: ImportStage, **context: object) -> None:
    details = "".join(f" | {key}={value}" for key, value in context.items())
    logger.info("Import stage | import_id=%s | stage=%s%s", import_id, stage.value, details)


def _report(import_id: str, report: ImportReport) -> ImportReport:
    _advance(
        import_id,
        ImportStage.REPORTED,
        success=report.success,
        created=report.parcels_created,
        warnings=len(report.warnings),
        errors=len(report.errors),
    )
    return report
