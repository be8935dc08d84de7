"""Thin ingress boundary helpers for the HTTP import endpoint.

Centralises the transport concerns so that ``function_app.py`` contains
only the trigger binding and the handoff:

- **build_import_request**: turns the multipart form, uploaded files and
  headers into a validated ``ImportRequest`` (caller identity first).
- **build_http_response**: maps an ``ImportReport`` or a raised error to
  an HTTP status and JSON body.

Status mapping:
    401  no caller identity
    404  project missing or not owned by the caller
    400  malformed request, missing subscription, or a format failure
    200  the file was parsed (even if no parcel survived extraction)
    500  anything unexpected; the body carries no internal detail
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from parcel_import.core.constants import MSG_IMPORT_FAILED
from parcel_import.core.exceptions import (
    AuthorizationError,
    ContractError,
    ParcelImportError,
    ProjectNotFoundError,
    UnauthenticatedError,
)

logger = logging.getLogger("parcel_import.core.ingress")

#: Header set by App Service authentication with the signed-in user's id.
PRINCIPAL_HEADER = "x-ms-client-principal-id"

FILE_FIELD = "file"
PROJECT_FIELD = "projectId"
PROFILE_FIELD = "profile"


@dataclass(frozen=True, slots=True)
class ImportRequest:
    """Validated upload request.

    Attributes:
        owner_id: Authenticated caller.
        project_id: Target project.
        file_name: Declared upload name (selects the decoder).
        file_bytes: Raw upload body.
        profile: Requested import profile, or ``None`` for the default.
    """

    owner_id: str
    project_id: str
    file_name: str
    file_bytes: bytes
    profile: str | None = None


def build_import_request(
    form: Mapping[str, Any],
    files: Mapping[str, Any],
    headers: Mapping[str, str],
) -> ImportRequest:
    """Validate an upload request.

    The caller identity is checked before anything else is read.

    Args:
        form: Multipart form fields.
        files: Uploaded files keyed by form field; each value exposes
            ``filename`` and ``read()``.
        headers: Request headers (looked up case-insensitively).

    Raises:
        UnauthenticatedError: If no caller identity is present.
        ContractError: If the file or the project id is missing.
    """
    owner_id = _header(headers, PRINCIPAL_HEADER)
    if not owner_id:
        raise UnauthenticatedError("Unauthorized", stage="ingress")

    upload = files.get(FILE_FIELD)
    if upload is None:
        raise ContractError("No file provided", stage="ingress", code="MISSING_FILE")

    project_id = str(form.get(PROJECT_FIELD) or "").strip()
    if not project_id:
        raise ContractError("No project ID provided", stage="ingress", code="MISSING_PROJECT_ID")

    profile = str(form.get(PROFILE_FIELD) or "").strip() or None
    file_name = str(getattr(upload, "filename", "") or "")
    file_bytes = upload.read()

    logger.debug(
        "Built import request | project_id=%s | file=%s | bytes=%d | profile=%s",
        project_id,
        file_name,
        len(file_bytes),
        profile or "<default>",
    )
    return ImportRequest(
        owner_id=owner_id,
        project_id=project_id,
        file_name=file_name,
        file_bytes=file_bytes,
        profile=profile,
    )


def build_http_response(
    report: Any = None,
    error: BaseException | None = None,
) -> tuple[int, dict[str, Any]]:
    """Map an import outcome to ``(status_code, json_body)``.

    Args:
        report: ``ImportReport`` of a completed call.
        error: Exception raised instead of a report.
    """
    if error is not None:
        return _error_response(error)
    if report is None:
        return 500, {"error": MSG_IMPORT_FAILED}
    return (400 if report.aborted else 200), report.to_response()


def _error_response(error: BaseException) -> tuple[int, dict[str, Any]]:
    if isinstance(error, UnauthenticatedError):
        return 401, {"error": error.message}
    if isinstance(error, ProjectNotFoundError):
        return 404, {"error": error.message}
    if isinstance(error, AuthorizationError | ContractError):
        return 400, {"error": error.message}
    if isinstance(error, ParcelImportError):
        logger.error("Import failed | %s", error.to_error_dict())
    else:
        logger.error("Import failed | error=%s", error, exc_info=error)
    return 500, {"error": MSG_IMPORT_FAILED}


def _header(headers: Mapping[str, str], name: str) -> str:
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return str(value).strip()
    return ""
