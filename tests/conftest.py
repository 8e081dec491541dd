from __future__ import annotations

import pathlib
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from stay_alert.db import open_database
from stay_alert.webapp import create_app


@pytest.fixture()
def db_path(tmp_path: pathlib.Path) -> pathlib.Path:
    return tmp_path / "stay_alert.sqlite3"


@pytest.fixture()
def conn(db_path: pathlib.Path):
    connection = open_database(db_path)
    try:
        yield connection
    finally:
        connection.close()


@pytest.fixture()
def now() -> datetime:
    return datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def client(db_path: pathlib.Path):
    with TestClient(create_app(db_path=db_path)) as test_client:
        yield test_client
