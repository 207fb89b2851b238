import threading

import pytest
import requests

from cache_store import VenueCacheStore
from database import InMemoryKeyValueStore
from models import VenueRecord
from pipeline import VenuePipeline
from status_store import StatusStore

FEED_URL = "https://feed.example.test/eating_venues/data.json"


def make_venue(name, lat="53.4055", lon="-2.9660", building=None, **kwargs):
    return VenueRecord(
        name=name,
        building=building if building is not None else f"{name} Building",
        lat=lat,
        lon=lon,
        description=kwargs.pop('description', f"{name} serves hot food"),
        opening_times=kwargs.pop('opening_times', ("Mon-Fri 08:00-17:00",)),
        **kwargs,
    )


def make_response(body, status_code=200):
    response = requests.Response()
    response.status_code = status_code
    response._content = body
    response.url = FEED_URL
    response.encoding = 'utf-8'
    return response


class FakeSession:
    """Stands in for requests.Session"""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        if self.error is not None:
            raise self.error
        return self.response


class FakeFetcher:
    feed_url = FEED_URL

    def __init__(self, venues=None, error=None, gate=None):
        self.venues = list(venues or [])
        self.error = error
        self.gate = gate
        self.calls = 0

    def fetch_venues(self):
        self.calls += 1
        if self.gate is not None:
            assert self.gate.wait(timeout=5)
        if self.error is not None:
            raise self.error
        return list(self.venues)


@pytest.fixture
def kv_store():
    return InMemoryKeyValueStore()


@pytest.fixture
def status_store(kv_store):
    return StatusStore(kv_store)


@pytest.fixture
def cache_store(tmp_path):
    return VenueCacheStore(str(tmp_path / "venue_cache.json"))


@pytest.fixture
def make_pipeline(cache_store, status_store):
    created = []

    def factory(fetcher, **kwargs):
        pipeline = VenuePipeline(fetcher, kwargs.pop('cache_store', cache_store),
                                 kwargs.pop('status_store', status_store), **kwargs)
        created.append(pipeline)
        return pipeline

    yield factory
    for pipeline in created:
        pipeline.close()


@pytest.fixture
def gate():
    event = threading.Event()
    yield event
    event.set()
