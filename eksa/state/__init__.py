"""Run records persisted per create run."""

from eksa.state.models import RunRecord
from eksa.state.store import config_dir, list_run_records, load_run_record, write_run_record

__all__ = [
    "RunRecord",
    "config_dir",
    "list_run_records",
    "load_run_record",
    "write_run_record",
]
