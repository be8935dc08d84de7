"""Azure Functions entry point for the parcel import endpoint.

Registers the HTTP trigger using the Python v2 programming model.

All business logic lives in the parcel_import package. This file is purely
the wiring layer between the HTTP binding and application code.
"""

from __future__ import annotations

import json
import logging

import azure.functions as func

from parcel_import.core.config import ImportConfig
from parcel_import.core.ingress import build_http_response, build_import_request
from parcel_import.models.catalog import load_field_catalog
from parcel_import.orchestrators.import_pipeline import import_parcels
from parcel_import.stores.memory import InMemoryParcelRepository

app = func.FunctionApp(http_auth_level=func.AuthLevel.ANONYMOUS)

logger = logging.getLogger("parcel_import.function_app")

# Fail fast at cold start on bad settings or an unreadable field catalog.
CONFIG = ImportConfig.from_env()
CATALOG = load_field_catalog(CONFIG.field_catalog_path)

# Project and parcel tables. Replace with a database-backed store in deployment.
REPOSITORY = InMemoryParcelRepository()


# ---------------------------------------------------------------------------
# HTTP: Parcel Import
# ---------------------------------------------------------------------------


@app.function_name("import_parcels")
@app.route(route="import/parcels", methods=["POST"])
def import_parcels_http(req: func.HttpRequest) -> func.HttpResponse:
    """Import parcels from an uploaded KML, KMZ or GeoJSON file.

    Form fields: ``file`` (the upload), ``projectId``, optional ``profile``.
    The caller is identified by the App Service authentication header.
    """
    return handle_import(req)


def handle_import(req: func.HttpRequest) -> func.HttpResponse:
    """Run one import request and render the JSON response."""
    try:
        request = build_import_request(req.form, req.files, req.headers)
        report = import_parcels(
            request.file_bytes,
            request.file_name,
            request.project_id,
            request.owner_id,
            project_store=REPOSITORY,
            parcel_store=REPOSITORY,
            profile=request.profile,
            config=CONFIG,
            catalog=CATALOG,
        )
    except Exception as exc:
        status, body = build_http_response(error=exc)
    else:
        status, body = build_http_response(report=report)
        logger.info(
            "Parcel import responded | project_id=%s | status=%d | created=%d",
            request.project_id,
            status,
            report.parcels_created,
        )

    return func.HttpResponse(
        json.dumps(body),
        status_code=status,
        mimetype="application/json",
    )
