# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-18
# Description: ChatLog.py
# -----------------------------------------------------------------------------
from __future__ import annotations

import json
import sqlite3
from contextlib import closing
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from embedding.EmbeddingRecord import utc_now_iso


class SqliteChatLog:
    """
    Chat history and query analytics.

    Tables:
      chat_sessions  (id, user_id, title, created_at, updated_at)
      chat_messages  (session_id, role, content, metadata, created_at)
      user_queries   (query, session_id, relevant_meetings, response_time_ms, created_at)
    """

    def __init__(self, db_path: str | Path = "chat_log.sqlite3") -> None:
        self._db_path = Path(db_path)
        if self._db_path.parent and not self._db_path.parent.exists():
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self._db_path)

    def _ensure_schema(self) -> None:
        with closing(self._connect()) as conn, conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS chat_sessions (
                    id TEXT PRIMARY KEY,
                    user_id TEXT,
                    title TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS chat_messages (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    session_id TEXT NOT NULL,
                    role TEXT NOT NULL,
                    content TEXT NOT NULL,
                    metadata TEXT NOT NULL DEFAULT '{}',
                    created_at TEXT NOT NULL,
                    FOREIGN KEY(session_id) REFERENCES chat_sessions(id)
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS user_queries (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    query TEXT NOT NULL,
                    session_id TEXT,
                    relevant_meetings TEXT NOT NULL,
                    response_time_ms INTEGER NOT NULL,
                    created_at TEXT NOT NULL
                )
                """
            )

    def ensure_session(self, session_id: str, *, user_id: Optional[str] = None, title: str = "") -> bool:
        """Create the session if it is missing. Returns True when it was created."""
        now = utc_now_iso()
        with closing(self._connect()) as conn, conn:
            cur = conn.execute(
                """
                INSERT OR IGNORE INTO chat_sessions (id, user_id, title, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (session_id, user_id, title[:100], now, now),
            )
            created = cur.rowcount == 1
            if not created:
                conn.execute("UPDATE chat_sessions SET updated_at = ? WHERE id = ?", (now, session_id))
        return created

    def add_message(
        self,
        session_id: str,
        role: str,
        content: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        with closing(self._connect()) as conn, conn:
            conn.execute(
                """
                INSERT INTO chat_messages (session_id, role, content, metadata, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (session_id, role, content, json.dumps(metadata or {}), utc_now_iso()),
            )

    def record_query(
        self,
        query: str,
        session_id: Optional[str],
        relevant_meetings: Sequence[str],
        response_time_ms: int,
    ) -> None:
        with closing(self._connect()) as conn, conn:
            conn.execute(
                """
                INSERT INTO user_queries (query, session_id, relevant_meetings, response_time_ms, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (query, session_id, json.dumps(list(relevant_meetings)), int(response_time_ms), utc_now_iso()),
            )

    def list_messages(self, session_id: str) -> List[Dict[str, Any]]:
        with closing(self._connect()) as conn:
            rows = conn.execute(
                """
                SELECT role, content, metadata, created_at
                FROM chat_messages
                WHERE session_id = ?
                ORDER BY id
                """,
                (session_id,),
            ).fetchall()
        return [
            {"role": role, "content": content, "metadata": json.loads(metadata), "created_at": created_at}
            for role, content, metadata, created_at in rows
        ]

    def list_queries(self, session_id: Optional[str] = None) -> List[Dict[str, Any]]:
        sql = "SELECT query, session_id, relevant_meetings, response_time_ms FROM user_queries"
        params: tuple = ()
        if session_id is not None:
            sql += " WHERE session_id = ?"
            params = (session_id,)
        with closing(self._connect()) as conn:
            rows = conn.execute(sql + " ORDER BY id", params).fetchall()
        return [
            {
                "query": q,
                "session_id": sid,
                "relevant_meetings": json.loads(meetings),
                "response_time_ms": ms,
            }
            for q, sid, meetings, ms in rows
        ]
