"""Store and settings builders shared by the test modules."""

import threading

from sqlalchemy.pool import StaticPool

from config import Settings
from db import RecordStore

SQLITE_OPTIONS = {"connect_args": {"check_same_thread": False}, "poolclass": StaticPool}


class GatedStore(RecordStore):
    """Record store whose writes block until ``release`` is set."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.release = threading.Event()
        self.done = threading.Event()
        self.calls = 0

    def create(self, document):
        self.calls += 1
        self.release.wait(timeout=5)
        try:
            return super().create(document)
        finally:
            self.done.set()


def make_store(cls=RecordStore, url="sqlite://"):
    return cls(url, retry_interval=60, engine_options=SQLITE_OPTIONS)


def make_settings(**overrides):
    values = {"database_url": "sqlite://", "api_prefix": "/api", "submit_timeout": 2.0}
    values.update(overrides)
    return Settings(**values)


class FixedIdStore(RecordStore):
    """Record store that gives every new row the same id."""

    def create(self, document):
        return super().create({**document, "id": "00000000-0000-0000-0000-000000000000"})
