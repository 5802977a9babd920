"""On-disk run records.

Every ``create`` run leaves one JSON file behind in the eksa config
directory (``$XDG_CONFIG_HOME/eksa``, falling back to ``~/.config/eksa``)::

    run_<cluster>_<run_id>.json

so a failed run can be inspected, and a leftover bootstrap cluster
found, after the process has exited.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import List, Optional

from eksa.state.models import RunRecord

logger = logging.getLogger(__name__)

_APP_DIR = "eksa"
_UNSAFE = re.compile(r"[^A-Za-z0-9_-]")


def config_dir() -> Path:
    """Directory run records live in; created on first use."""
    base = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    path = Path(base) / _APP_DIR
    path.mkdir(parents=True, exist_ok=True)
    return path


def _safe_cluster_name(name: Optional[str]) -> str:
    if not name:
        return "unknown"
    return _UNSAFE.sub("_", name)


def write_run_record(record: RunRecord) -> Path:
    dest = config_dir() / f"run_{_safe_cluster_name(record.cluster_name)}_{record.run_id}.json"
    dest.write_text(record.to_sorted_json() + "\n", encoding="utf-8")
    logger.info("Run record written to %s", dest)
    return dest


def load_run_record(path: str | Path) -> RunRecord:
    return RunRecord.model_validate_json(Path(path).read_text(encoding="utf-8"))


def list_run_records(cluster_name: Optional[str] = None) -> List[RunRecord]:
    """Stored records, oldest first, optionally only those for *cluster_name*.

    Files that fail to parse are skipped with a warning.
    """
    prefix = f"run_{_safe_cluster_name(cluster_name)}_" if cluster_name else "run_"
    records: List[RunRecord] = []
    for path in sorted(config_dir().glob(f"{prefix}*.json")):
        try:
            record = load_run_record(path)
        except (OSError, ValueError) as exc:
            logger.warning("Skipping unreadable run record %s: %s", path, exc)
            continue
        if cluster_name and record.cluster_name != cluster_name:
            continue
        records.append(record)
    records.sort(key=lambda r: r.run_id)
    return records
