"""Shared fixtures for zonesync tests."""

from __future__ import annotations

import pytest

from tests.lib.wfs_fakes import PARC_RING, WFS_URL, FakeWfsServer, feature
from zoneserver.config import Settings


@pytest.fixture
def wfs_settings():
    return Settings(
        wfs_url=WFS_URL,
        wfs_feature_type="geoimage:zones",
        wfs_namespace_uri="http://www.geoimagesolutions.com",
    )


@pytest.fixture
def wfs_server():
    """Server holding one polygon (zones.1) and one point (zones.2)."""
    return FakeWfsServer(features=[
        feature("zones.1", {"type": "Polygon", "coordinates": [PARC_RING]}, name="Parc"),
        feature("zones.2", {"type": "Point", "coordinates": [2.34, 48.84]}, name="Kiosque", type="poi"),
    ])


@pytest.fixture
def anyio_backend():
    return "asyncio"
