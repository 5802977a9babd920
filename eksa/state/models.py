"""Run record model.

Matches the JSON written per run::

    {
      "bootstrap_cluster": "dev-eks-a-cluster",
      "cluster_name": "dev",
      "error": "",
      "provider": "vsphere",
      "run_id": "YYYYMMDDHHMMSS",
      "success": true,
      "tasks": ["setup-validate", "bootstrap-cluster-init", ...],
      "workflow": "create",
      "workload_cluster": "dev"
    }
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field


class RunRecord(BaseModel):
    """Per-run snapshot written to ``<config_dir>/run_<cluster>_<run_id>.json``."""

    run_id: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S"),
    )
    workflow: str = "create"
    cluster_name: Optional[str] = None
    provider: str = ""
    tasks: List[str] = Field(default_factory=list)
    success: bool = False
    error: str = ""

    # -- handles left behind by the run --------------------------------------
    bootstrap_cluster: str = ""
    workload_cluster: str = ""
    kubeconfig_file: str = ""

    def to_sorted_json(self, indent: int = 2) -> str:
        """Serialise with sorted keys for deterministic output."""
        return json.dumps(
            self.model_dump(mode="json"),
            indent=indent,
            sort_keys=True,
        )
