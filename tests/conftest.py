import logging
import os
import socket
import sys
import urllib.request
from pathlib import Path

import pytest


REPO_ROOT = Path(__file__).resolve().parents[1]
SRC = REPO_ROOT / "src"

# Prefer repo sources over any installed package.
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


AGENT_EMAIL = "agent@example.com"
AGENT_PASSWORD = "correct horse"


@pytest.fixture(autouse=True)
def block_network(monkeypatch):
    if os.getenv("LIVE") == "1":
        return

    real_connect = socket.socket.connect

    def guarded_connect(sock, address):
        host = address[0]
        if host not in ("127.0.0.1", "localhost"):
            raise RuntimeError("Network access blocked in tests")
        return real_connect(sock, address)

    monkeypatch.setattr(socket.socket, "connect", guarded_connect)
    monkeypatch.setattr(
        urllib.request,
        "urlopen",
        lambda *args, **kwargs: (_ for _ in ()).throw(
            RuntimeError("Network access blocked in tests")
        ),
    )


@pytest.fixture(autouse=True)
def restore_logging():
    # configure_logging binds a handler to the (captured) stdout of one test.
    yield
    logger = logging.getLogger("asset_listr")
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    logger.propagate = True


def _reset_settings(monkeypatch, **env):
    from asset_listr.config import reset_settings_cache

    for k, v in env.items():
        if v is None:
            monkeypatch.delenv(k, raising=False)
        else:
            monkeypatch.setenv(k, str(v))
    reset_settings_cache()


@pytest.fixture()
def reset_settings(monkeypatch):
    from asset_listr.config import reset_settings_cache

    def _apply(**env):
        _reset_settings(monkeypatch, **env)

    yield _apply
    reset_settings_cache()


@pytest.fixture()
def sqlite_db(tmp_path, monkeypatch):
    """Local backend selected via env, with one agent already registered."""

    from asset_listr.config import reset_settings_cache
    from asset_listr.gateway import SQLiteGateway

    db = tmp_path / "listings.sqlite"
    _reset_settings(
        monkeypatch,
        ASSET_LISTR_BACKEND="sqlite",
        ASSET_LISTR_SQLITE_PATH=str(db),
    )
    gw = SQLiteGateway(str(db))
    try:
        gw.create_agent(AGENT_EMAIL, AGENT_PASSWORD, full_name="Dana Agent")
    finally:
        gw.close()
    yield db
    reset_settings_cache()


@pytest.fixture()
def signed_in(sqlite_db):
    """An SQLiteGateway bound to a live session for the registered agent."""

    from asset_listr.gateway import SQLiteGateway

    gw = SQLiteGateway(str(sqlite_db))
    gw.sign_in(AGENT_EMAIL, AGENT_PASSWORD)
    try:
        yield gw
    finally:
        gw.close()


def make_property(**overrides):
    from asset_listr.models import Property

    data = {
        "id": "p-1",
        "property_id": "AL-001",
        "title": "Sea View Apartment",
        "type": "Apartment",
        "location": "Marina Bay",
        "area": 1200.0,
        "price": 450000.0,
        "bedrooms": 2,
        "amenities": ["Pool", "Gym"],
        "owner_contact": "+1 555 0100",
        "description": "Corner unit",
        "images": None,
        "agent_id": "agent-1",
        "created_at": "2026-01-01T00:00:00+00:00",
        "updated_at": "2026-01-01T00:00:00+00:00",
    }
    data.update(overrides)
    return Property.model_validate(data)


def draft_fields(**overrides):
    data = {
        "property_id": "AL-100",
        "title": "Hillside Villa",
        "type": "Villa",
        "location": "North Ridge",
        "area": "3400",
        "price": "1250000",
        "bedrooms": "4",
        "amenities": "Pool, Garden",
        "owner_contact": "owner@example.com",
        "description": "Quiet street",
    }
    data.update(overrides)
    return data


class RecordingGateway:
    """In-memory gateway double that records every call."""

    def __init__(self, rows=None, user_id="agent-1", signed_in=True):
        from asset_listr.gateway.base import AuthUser

        self.rows = [dict(r) for r in (rows or [])]
        self.user = AuthUser(id=user_id, email="agent@example.com") if signed_in else None
        self.calls = []
        self.fail_with = {}

    def _maybe_fail(self, op):
        exc = self.fail_with.get(op)
        if exc is not None:
            raise exc

    def get_session(self):
        from asset_listr.gateway.base import Session

        self.calls.append(("get_session",))
        self._maybe_fail("get_session")
        if self.user is None:
            return None
        return Session(access_token="token", user=self.user)

    def get_current_user(self):
        from asset_listr.exceptions import NotAuthenticatedError

        self.calls.append(("get_current_user",))
        if self.user is None:
            raise NotAuthenticatedError()
        return self.user

    def sign_in(self, email, password):
        raise NotImplementedError

    def sign_out(self):
        self.calls.append(("sign_out",))
        self._maybe_fail("sign_out")
        self.user = None

    def list(self, collection, *, order_by="created_at", descending=True):
        self.calls.append(("list", collection, order_by, descending))
        self._maybe_fail("list")
        return sorted(
            (dict(r) for r in self.rows),
            key=lambda r: r.get(order_by) or "",
            reverse=descending,
        )

    def insert(self, collection, record):
        self.calls.append(("insert", collection, dict(record)))
        self._maybe_fail("insert")
        row = dict(record)
        row.setdefault("id", f"gen-{len(self.rows) + 1}")
        row.setdefault("images", None)
        row["created_at"] = row["updated_at"] = f"2026-02-{len(self.rows) + 1:02d}T00:00:00+00:00"
        self.rows.append(row)
        return dict(row)

    def update(self, collection, record_id, record):
        from asset_listr.exceptions import RecordNotFoundError

        self.calls.append(("update", collection, record_id, dict(record)))
        self._maybe_fail("update")
        for row in self.rows:
            if row["id"] == record_id:
                row.update(record)
                return dict(row)
        raise RecordNotFoundError(collection, record_id)

    def delete(self, collection, record_id):
        from asset_listr.exceptions import RecordNotFoundError

        self.calls.append(("delete", collection, record_id))
        self._maybe_fail("delete")
        before = len(self.rows)
        self.rows = [r for r in self.rows if r["id"] != record_id]
        if len(self.rows) == before:
            raise RecordNotFoundError(collection, record_id)

    def close(self):
        return None

    def ops(self):
        return [c[0] for c in self.calls]
