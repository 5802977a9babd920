"""Shared fixtures."""

from __future__ import annotations

import pytest

from eksa.cluster.models import ClusterSpec
from fakes import Collaborators, make_spec


@pytest.fixture
def collab() -> Collaborators:
    return Collaborators()


@pytest.fixture
def cluster_spec() -> ClusterSpec:
    return make_spec()
