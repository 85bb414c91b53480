"""Release publication and asset reconciliation."""

from .errors import PublishError
from .orchestrator import PublishReport, Publisher, create_release
from .reconcile import ReconcileOutcome, ReconcileStep, reconcile_file
from .resolver import is_already_exists, normalize_upload_url, resolve_release

__all__ = [
    "PublishError",
    "PublishReport",
    "Publisher",
    "ReconcileOutcome",
    "ReconcileStep",
    "create_release",
    "is_already_exists",
    "normalize_upload_url",
    "reconcile_file",
    "resolve_release",
]
