"""Data models and schemas.

Defines the data structures used throughout the import:
- GeoFeature / GeoDocument: the intermediate FeatureCollection
- ParcelRecord: the canonical normalized parcel
- Project / SubscriptionLimits / QuotaState: quota inputs
- ImportReport: the per-request result returned to the caller
- FieldCatalog / ImportProfile: candidate-name configuration
"""

from parcel_import.models.catalog import FieldCatalog, ImportProfile
from parcel_import.models.feature import GeoDocument, GeoFeature
from parcel_import.models.parcel import ParcelRecord, ParcelStatus
from parcel_import.models.quota import Project, QuotaState, SubscriptionLimits
from parcel_import.models.report import ImportReport

__all__ = [
    "FieldCatalog",
    "GeoDocument",
    "GeoFeature",
    "ImportProfile",
    "ImportReport",
    "ParcelRecord",
    "ParcelStatus",
    "Project",
    "QuotaState",
    "SubscriptionLimits",
]
