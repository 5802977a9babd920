"""Durable artifact writer rooted at a per-cluster directory.

Everything a workflow persists (resolved cluster config, validation
report, clusterctl configuration) goes through a :class:`FileWriter`
so tests can point it at a temporary directory.

Layout::

    <base>/<cluster_name>/<cluster_name>-eks-a-cluster.yaml
    <base>/<cluster_name>/generated/validation-report.json
"""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

GENERATED_DIR = "generated"


class FileWriter:
    """Write named text artifacts under a root directory."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    @classmethod
    def for_cluster(cls, cluster_name: str, base_dir: str | Path = ".") -> "FileWriter":
        """Writer rooted at ``<base_dir>/<cluster_name>``."""
        return cls(Path(base_dir) / cluster_name)

    def with_dir(self, subdir: str) -> "FileWriter":
        """Return a writer rooted at a sub-directory of this one."""
        return FileWriter(self.root / subdir)

    def write(self, name: str, content: str | bytes) -> Path:
        """Write *content* to ``<root>/<name>`` and return the path."""
        dest = self.root / name
        dest.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            dest.write_bytes(content)
        else:
            dest.write_text(content, encoding="utf-8")
        logger.debug("Wrote %s", dest)
        return dest
