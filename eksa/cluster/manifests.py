"""Fetching the install manifests a versions bundle points at."""

from __future__ import annotations

import logging
from pathlib import Path
from urllib.parse import urlparse

import requests

from eksa.cluster.models import Manifest
from eksa.errors import EksaError

logger = logging.getLogger(__name__)

MANIFEST_TIMEOUT = 30


def load_manifest(manifest: Manifest, *, timeout: int = MANIFEST_TIMEOUT) -> bytes:
    """Return the content of *manifest*.

    Raises:
        EksaError: the manifest cannot be read or downloaded.
    """
    parsed = urlparse(manifest.uri)
    if parsed.scheme in ("http", "https"):
        logger.debug("Downloading manifest %s", manifest.uri)
        try:
            resp = requests.get(manifest.uri, timeout=timeout)
            resp.raise_for_status()
        except requests.exceptions.RequestException as exc:
            raise EksaError(f"can't load manifest {manifest.uri}: {exc}") from exc
        return resp.content

    path = Path(parsed.path if parsed.scheme == "file" else manifest.uri)
    try:
        return path.read_bytes()
    except OSError as exc:
        raise EksaError(f"can't load manifest {manifest.uri}: {exc}") from exc
