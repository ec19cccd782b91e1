import json
import sqlite3
import time
import uuid
from typing import Any, Dict, List, Optional

from posterlink import config
from posterlink.models import User

USERS_DB_PATH = config.USERS_DB_PATH


def _now_ms() -> int:
    return int(time.time() * 1000)


def _db() -> sqlite3.Connection:
    conn = sqlite3.connect(USERS_DB_PATH, timeout=5, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA busy_timeout=5000;")
    return conn


def _ensure_column(conn: sqlite3.Connection, table: str, column: str, decl_sql: str) -> None:
    cols = {r["name"] for r in conn.execute(f"PRAGMA table_info({table})")}
    if column not in cols:
        conn.execute(f"ALTER TABLE {table} ADD COLUMN {column} {decl_sql}")


def _row_to_user(row: sqlite3.Row) -> User:
    d: Dict[str, Any] = dict(row)
    posters_json = d.get("posters_json")
    try:
        posters = json.loads(posters_json) if posters_json else []
    except ValueError:
        posters = []
    return User(
        user_id=d["user_id"],
        name=d.get("name") or "",
        email=d["email"],
        password_hash=d["password_hash"],
        is_premium=bool(d.get("is_premium")),
        posters=posters,
    )


def init_users_db() -> None:
    conn = _db()
    try:
        conn.execute("""
        CREATE TABLE IF NOT EXISTS users (
            user_id TEXT PRIMARY KEY,
            name TEXT,
            email TEXT NOT NULL UNIQUE,
            password_hash TEXT NOT NULL,
            is_premium INTEGER NOT NULL DEFAULT 0,
            created_at_ms INTEGER NOT NULL,
            updated_at_ms INTEGER NOT NULL
        )
        """)

        # Poster list was added after the first schema; migrate in-place.
        _ensure_column(conn, "users", "posters_json", "TEXT NOT NULL DEFAULT '[]'")

        conn.execute("CREATE INDEX IF NOT EXISTS idx_users_email ON users(email)")
        conn.commit()
    finally:
        conn.close()


def create_user(name: str, email: str, password_hash: str) -> Optional[User]:
    """Insert a new user. Returns None if the email is already taken."""
    now = _now_ms()
    user_id = uuid.uuid4().hex
    conn = _db()
    try:
        try:
            conn.execute("""
            INSERT INTO users (
                user_id, name, email, password_hash, is_premium, posters_json,
                created_at_ms, updated_at_ms
            ) VALUES (?, ?, ?, ?, 0, '[]', ?, ?)
            """, (user_id, name, email, password_hash, now, now))
            conn.commit()
        except sqlite3.IntegrityError:
            return None
    finally:
        conn.close()
    return User(user_id=user_id, name=name, email=email, password_hash=password_hash)


def get_user(user_id: str) -> Optional[User]:
    conn = _db()
    try:
        row = conn.execute("SELECT * FROM users WHERE user_id = ?", (user_id,)).fetchone()
        return _row_to_user(row) if row else None
    finally:
        conn.close()


def get_user_by_email(email: str) -> Optional[User]:
    conn = _db()
    try:
        row = conn.execute("SELECT * FROM users WHERE email = ?", (email,)).fetchone()
        return _row_to_user(row) if row else None
    finally:
        conn.close()


def set_premium(user_id: str) -> Optional[User]:
    """Free -> Premium. There is no way back."""
    conn = _db()
    try:
        conn.execute(
            "UPDATE users SET is_premium = 1, updated_at_ms = ? WHERE user_id = ?",
            (_now_ms(), user_id),
        )
        conn.commit()
    finally:
        conn.close()
    return get_user(user_id)


def append_poster(user_id: str, url: str) -> List[str]:
    """Append a hosted poster URL to the user's list and return the new list.

    Read-modify-write on one row: concurrent uploads for the same user are
    last-write-wins.
    """
    conn = _db()
    try:
        row = conn.execute("SELECT posters_json FROM users WHERE user_id = ?", (user_id,)).fetchone()
        if not row:
            return []
        posters = json.loads(row["posters_json"] or "[]")
        posters.append(url)
        conn.execute(
            "UPDATE users SET posters_json = ?, updated_at_ms = ? WHERE user_id = ?",
            (json.dumps(posters), _now_ms(), user_id),
        )
        conn.commit()
        return posters
    finally:
        conn.close()
