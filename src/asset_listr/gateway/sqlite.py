from __future__ import annotations

import hashlib
import hmac
import json
import logging
import os
import secrets
import sqlite3
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from asset_listr.config import Settings
from asset_listr.exceptions import GatewayError, NotAuthenticatedError, RecordNotFoundError
from asset_listr.models import PROPERTIES, Profile

from .base import AuthUser, PersistenceGateway, Session, register_gateway


logger = logging.getLogger("asset_listr.gateway")

SESSION_TTL_S = 3600
_PBKDF2_ROUNDS = 200_000

_PROPERTY_COLUMNS = (
    "property_id",
    "title",
    "type",
    "location",
    "area",
    "price",
    "bedrooms",
    "amenities",
    "owner_contact",
    "description",
    "images",
)
_IMMUTABLE = {"id", "agent_id", "created_at", "updated_at"}
_ORDERABLE = {"created_at", "updated_at", "price", "title", "property_id"}
_JSON_COLUMNS = {"amenities", "images"}


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _hash_password(password: str, salt: bytes) -> str:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, _PBKDF2_ROUNDS).hex()


class SQLiteGateway(PersistenceGateway):
    """Local single-file backend for development, demos and tests.

    Mirrors the hosted backend's contract: password sign-in with opaque
    session tokens, backend-owned ids and timestamps, newest-first listing.
    Agents may only update or delete their own listings; other agents' rows
    read as not found.
    """

    gateway_key = "sqlite"

    def __init__(self, path: str, *, access_token: Optional[str] = None) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(self.path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA foreign_keys = ON")
        self.access_token = access_token or None
        self._init_schema()

    def close(self) -> None:
        if self.conn is not None:
            self.conn.close()
            self.conn = None

    def _init_schema(self) -> None:
        self.conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS profiles (
                id TEXT PRIMARY KEY,
                full_name TEXT,
                email TEXT NOT NULL UNIQUE,
                phone TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );
            CREATE TABLE IF NOT EXISTS agent_credentials (
                agent_id TEXT PRIMARY KEY REFERENCES profiles(id) ON DELETE CASCADE,
                salt TEXT NOT NULL,
                password_hash TEXT NOT NULL
            );
            CREATE TABLE IF NOT EXISTS sessions (
                token TEXT PRIMARY KEY,
                agent_id TEXT NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
                created_at TEXT NOT NULL,
                expires_at REAL NOT NULL
            );
            CREATE TABLE IF NOT EXISTS properties (
                id TEXT PRIMARY KEY,
                property_id TEXT NOT NULL UNIQUE,
                title TEXT NOT NULL,
                type TEXT NOT NULL CHECK (type IN ('Apartment', 'Villa', 'Plot')),
                location TEXT NOT NULL,
                area REAL NOT NULL CHECK (area > 0),
                price REAL NOT NULL CHECK (price > 0),
                bedrooms INTEGER CHECK (bedrooms IS NULL OR bedrooms >= 0),
                amenities TEXT,
                owner_contact TEXT NOT NULL,
                description TEXT,
                images TEXT,
                agent_id TEXT NOT NULL REFERENCES profiles(id),
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_properties_created_at ON properties(created_at);
            """
        )
        self.conn.commit()

    # -- rows -------------------------------------------------------------

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> Dict[str, Any]:
        out = dict(row)
        for col in _JSON_COLUMNS:
            raw = out.get(col)
            out[col] = json.loads(raw) if raw else None
        return out

    @staticmethod
    def _to_column(col: str, value: Any) -> Any:
        if col in _JSON_COLUMNS:
            return json.dumps(list(value)) if value else None
        return value

    def _fetch_property(self, record_id: str) -> Optional[Dict[str, Any]]:
        row = self.conn.execute("SELECT * FROM properties WHERE id=?", (record_id,)).fetchone()
        return self._row_to_record(row) if row else None

    @staticmethod
    def _check_collection(collection: str) -> None:
        if collection != PROPERTIES:
            raise GatewayError(f"Unknown collection: {collection}", status_code=404)

    def _write(self, sql: str, params: tuple) -> sqlite3.Cursor:
        try:
            cur = self.conn.execute(sql, params)
            self.conn.commit()
            return cur
        except sqlite3.IntegrityError as e:
            self.conn.rollback()
            raise GatewayError(str(e), status_code=409) from e
        except sqlite3.Error as e:
            self.conn.rollback()
            raise GatewayError(str(e), status_code=500) from e

    # -- agents -----------------------------------------------------------

    def create_agent(
        self,
        email: str,
        password: str,
        *,
        full_name: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> Profile:
        email_n = (email or "").strip().lower()
        if not email_n or not password:
            raise GatewayError("email and password are required", status_code=400)
        now = _utc_now_iso()
        agent_id = str(uuid.uuid4())
        salt = os.urandom(16)
        try:
            self.conn.execute(
                "INSERT INTO profiles (id, full_name, email, phone, created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?)",
                (agent_id, full_name, email_n, phone, now, now),
            )
            self.conn.execute(
                "INSERT INTO agent_credentials (agent_id, salt, password_hash) VALUES (?, ?, ?)",
                (agent_id, salt.hex(), _hash_password(password, salt)),
            )
            self.conn.commit()
        except sqlite3.IntegrityError as e:
            self.conn.rollback()
            raise GatewayError("An agent with this email already exists", status_code=409) from e
        logger.info("created agent %s", agent_id)
        return Profile(
            id=agent_id,
            full_name=full_name,
            email=email_n,
            phone=phone,
            created_at=now,
            updated_at=now,
        )

    def get_profile(self, agent_id: str) -> Optional[Profile]:
        row = self.conn.execute("SELECT * FROM profiles WHERE id=?", (agent_id,)).fetchone()
        return Profile(**dict(row)) if row else None

    # -- auth -------------------------------------------------------------

    def _session_row(self) -> Optional[sqlite3.Row]:
        if not self.access_token:
            return None
        return self.conn.execute(
            """
            SELECT s.token, s.expires_at, p.id AS agent_id, p.email
            FROM sessions s JOIN profiles p ON p.id = s.agent_id
            WHERE s.token=? AND s.expires_at > ?
            """,
            (self.access_token, time.time()),
        ).fetchone()

    def get_session(self) -> Optional[Session]:
        row = self._session_row()
        if not row:
            return None
        return Session(
            access_token=str(row["token"]),
            user=AuthUser(id=str(row["agent_id"]), email=row["email"]),
            expires_at=int(row["expires_at"]),
        )

    def get_current_user(self) -> AuthUser:
        session = self.get_session()
        if session is None:
            raise NotAuthenticatedError()
        return session.user

    def sign_in(self, email: str, password: str) -> Session:
        row = self.conn.execute(
            """
            SELECT p.id, p.email, c.salt, c.password_hash
            FROM profiles p JOIN agent_credentials c ON c.agent_id = p.id
            WHERE p.email=?
            """,
            ((email or "").strip().lower(),),
        ).fetchone()
        if not row:
            raise NotAuthenticatedError("Invalid login credentials")
        candidate = _hash_password(password or "", bytes.fromhex(row["salt"]))
        if not hmac.compare_digest(candidate, row["password_hash"]):
            raise NotAuthenticatedError("Invalid login credentials")

        token = secrets.token_urlsafe(32)
        expires_at = time.time() + SESSION_TTL_S
        self._write(
            "INSERT INTO sessions (token, agent_id, created_at, expires_at) VALUES (?, ?, ?, ?)",
            (token, row["id"], _utc_now_iso(), expires_at),
        )
        self.access_token = token
        return Session(
            access_token=token,
            user=AuthUser(id=str(row["id"]), email=row["email"]),
            expires_at=int(expires_at),
        )

    def sign_out(self) -> None:
        if not self.access_token:
            return
        self._write("DELETE FROM sessions WHERE token=?", (self.access_token,))
        self.access_token = None

    # -- data -------------------------------------------------------------

    def list(
        self,
        collection: str,
        *,
        order_by: str = "created_at",
        descending: bool = True,
    ) -> List[Dict[str, Any]]:
        self._check_collection(collection)
        self.get_current_user()
        if order_by not in _ORDERABLE:
            raise GatewayError(f"Cannot order by {order_by}", status_code=400)
        direction = "DESC" if descending else "ASC"
        rows = self.conn.execute(
            f"SELECT * FROM properties ORDER BY {order_by} {direction}, rowid {direction}"
        ).fetchall()
        return [self._row_to_record(r) for r in rows]

    def insert(self, collection: str, record: Dict[str, Any]) -> Dict[str, Any]:
        self._check_collection(collection)
        user = self.get_current_user()
        agent_id = str(record.get("agent_id") or "")
        if agent_id != user.id:
            raise GatewayError(
                "new row violates row-level security policy for table \"properties\"",
                status_code=403,
            )
        now = _utc_now_iso()
        record_id = str(uuid.uuid4())
        cols = ["id", "agent_id", "created_at", "updated_at"]
        values: List[Any] = [record_id, agent_id, now, now]
        for col in _PROPERTY_COLUMNS:
            if col in record:
                cols.append(col)
                values.append(self._to_column(col, record[col]))
        placeholders = ", ".join("?" for _ in cols)
        self._write(
            f"INSERT INTO properties ({', '.join(cols)}) VALUES ({placeholders})",
            tuple(values),
        )
        logger.info("inserted %s %s", collection, record_id)
        return self._fetch_property(record_id) or {}

    def update(
        self, collection: str, record_id: str, record: Dict[str, Any]
    ) -> Dict[str, Any]:
        self._check_collection(collection)
        user = self.get_current_user()
        changes = {
            k: v for k, v in record.items() if k in _PROPERTY_COLUMNS and k not in _IMMUTABLE
        }
        assignments = [f"{col}=?" for col in changes] + ["updated_at=?"]
        values = [self._to_column(col, v) for col, v in changes.items()] + [_utc_now_iso()]
        cur = self._write(
            f"UPDATE properties SET {', '.join(assignments)} WHERE id=? AND agent_id=?",
            tuple(values) + (record_id, user.id),
        )
        if cur.rowcount == 0:
            raise RecordNotFoundError(collection, record_id)
        logger.info("updated %s %s", collection, record_id)
        return self._fetch_property(record_id) or {}

    def delete(self, collection: str, record_id: str) -> None:
        self._check_collection(collection)
        user = self.get_current_user()
        cur = self._write(
            "DELETE FROM properties WHERE id=? AND agent_id=?",
            (record_id, user.id),
        )
        if cur.rowcount == 0:
            raise RecordNotFoundError(collection, record_id)
        logger.info("deleted %s %s", collection, record_id)


@register_gateway("sqlite")
def _build(settings: Settings, access_token: Optional[str]) -> PersistenceGateway:
    return SQLiteGateway(settings.sqlite_path, access_token=access_token)
