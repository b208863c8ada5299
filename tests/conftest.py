"""Shared fixtures: a Digest transport and the in-memory Atlas backend."""

import pytest

from atlas_api import AtlasAPI
from atlas_containers import AtlasClient
from atlas_test_api import FakeAtlas


@pytest.fixture
def api():
    return AtlasAPI("public-key", "private-key")


@pytest.fixture
def atlas(requests_mock):
    return FakeAtlas(requests_mock)


@pytest.fixture
def client(api, atlas):
    return AtlasClient(api)
