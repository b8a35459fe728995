"""
Storage backend for arena state.

Uses SQLite for tournaments, the competitor roster, duel history and session
counters. Tournaments are stored as JSON snapshots of the data model, so a
loaded tournament can continue exactly where it was saved. Nothing is saved
automatically; callers decide when to persist.
"""

import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Dict, Any

from src.arena.competitor import Competitor
from src.history import DuelHistory, DuelRecord
from src.tournament.models import Tournament


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ArenaStorage:
    """
    Handles persistent storage of arena state.

    Uses SQLite tables in the arena.db database.
    """

    def __init__(self, data_dir: str = "data"):
        """
        Initialize storage backend.

        Args:
            data_dir: Base directory for data storage
        """
        self.data_dir = Path(data_dir)
        self.db_path = self.data_dir / "arena.db"

        # Ensure directory exists
        self.data_dir.mkdir(parents=True, exist_ok=True)

        # Initialize database tables
        self._init_db()

    def _init_db(self):
        """Initialize SQLite database schema."""
        with sqlite3.connect(self.db_path) as conn:
            # Tournament snapshots
            conn.execute("""
                CREATE TABLE IF NOT EXISTS tournaments (
                    tournament_id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    format TEXT NOT NULL,
                    status TEXT NOT NULL,
                    winner TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    snapshot TEXT NOT NULL
                )
            """)

            # Roster, in roster order
            conn.execute("""
                CREATE TABLE IF NOT EXISTS competitors (
                    competitor_id TEXT PRIMARY KEY,
                    position INTEGER NOT NULL,
                    name TEXT NOT NULL,
                    division INTEGER NOT NULL,
                    data TEXT NOT NULL
                )
            """)

            # Duel history, in chronological order
            conn.execute("""
                CREATE TABLE IF NOT EXISTS duel_history (
                    record_id TEXT PRIMARY KEY,
                    seq INTEGER NOT NULL,
                    kind TEXT NOT NULL,
                    tournament_id TEXT,
                    timestamp TEXT NOT NULL,
                    data TEXT NOT NULL
                )
            """)

            # Session counters
            conn.execute("""
                CREATE TABLE IF NOT EXISTS session_meta (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)

            # Indexes
            conn.execute("CREATE INDEX IF NOT EXISTS idx_tournaments_status ON tournaments(status)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_history_seq ON duel_history(seq)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_history_tournament ON duel_history(tournament_id)")

            conn.commit()

    # ------------------------------------------------------------------
    # Tournaments
    # ------------------------------------------------------------------

    def save_tournament(self, tournament: Tournament):
        """Save or update a tournament snapshot."""
        now = _now()
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                INSERT INTO tournaments
                (tournament_id, name, format, status, winner, created_at, updated_at, snapshot)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(tournament_id) DO UPDATE SET
                    name = excluded.name,
                    status = excluded.status,
                    winner = excluded.winner,
                    updated_at = excluded.updated_at,
                    snapshot = excluded.snapshot
            """, (
                tournament.tournament_id,
                tournament.name,
                tournament.format.value,
                tournament.status.value,
                tournament.winner,
                now,
                now,
                json.dumps(tournament.to_dict())
            ))
            conn.commit()

    def load_tournament(self, tournament_id: str) -> Optional[Tournament]:
        """Load a tournament by ID."""
        with sqlite3.connect(self.db_path) as conn:
            row = conn.execute(
                "SELECT snapshot FROM tournaments WHERE tournament_id = ?",
                (tournament_id,)
            ).fetchone()
        if not row:
            return None
        return Tournament.from_dict(json.loads(row[0]))

    def load_tournaments(self) -> List[Tournament]:
        """Load every stored tournament, oldest first."""
        with sqlite3.connect(self.db_path) as conn:
            rows = conn.execute(
                "SELECT snapshot FROM tournaments ORDER BY created_at, rowid"
            ).fetchall()
        return [Tournament.from_dict(json.loads(r[0])) for r in rows]

    def list_tournaments(self, status: Optional[str] = None, limit: int = 20) -> List[Dict[str, Any]]:
        """List recent tournaments."""
        query = """
            SELECT tournament_id, name, format, status, winner, created_at, updated_at
            FROM tournaments
        """
        params: List[Any] = []
        if status is not None:
            query += " WHERE status = ?"
            params.append(status)
        query += " ORDER BY created_at DESC, rowid DESC LIMIT ?"
        params.append(limit)

        with sqlite3.connect(self.db_path) as conn:
            conn.row_factory = sqlite3.Row
            cursor = conn.execute(query, params)
            return [dict(row) for row in cursor.fetchall()]

    # ------------------------------------------------------------------
    # Roster
    # ------------------------------------------------------------------

    def save_roster(self, competitors: List[Competitor]):
        """Replace the stored roster."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("DELETE FROM competitors")
            for position, competitor in enumerate(competitors):
                conn.execute("""
                    INSERT INTO competitors (competitor_id, position, name, division, data)
                    VALUES (?, ?, ?, ?, ?)
                """, (
                    competitor.competitor_id,
                    position,
                    competitor.name,
                    competitor.division,
                    json.dumps(competitor.to_dict())
                ))
            conn.commit()

    def load_roster(self) -> List[Competitor]:
        """Load the roster in its saved order."""
        with sqlite3.connect(self.db_path) as conn:
            rows = conn.execute("SELECT data FROM competitors ORDER BY position").fetchall()
        return [Competitor.from_dict(json.loads(r[0])) for r in rows]

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def save_history(self, history: DuelHistory):
        """Save duel history. Records already stored are left untouched."""
        with sqlite3.connect(self.db_path) as conn:
            for seq, record in enumerate(history.records):
                conn.execute("""
                    INSERT OR IGNORE INTO duel_history
                    (record_id, seq, kind, tournament_id, timestamp, data)
                    VALUES (?, ?, ?, ?, ?, ?)
                """, (
                    record.record_id,
                    seq,
                    record.kind.value,
                    record.tournament_id,
                    record.timestamp,
                    json.dumps(record.to_dict())
                ))
            conn.commit()

    def load_history(self) -> DuelHistory:
        """Load duel history in chronological order."""
        with sqlite3.connect(self.db_path) as conn:
            rows = conn.execute("SELECT data FROM duel_history ORDER BY seq").fetchall()
        return DuelHistory([DuelRecord.from_dict(json.loads(r[0])) for r in rows])

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def save_meta(self, values: Dict[str, Any]):
        """Save session counters as JSON values."""
        with sqlite3.connect(self.db_path) as conn:
            for key, value in values.items():
                conn.execute(
                    "INSERT OR REPLACE INTO session_meta (key, value) VALUES (?, ?)",
                    (key, json.dumps(value))
                )
            conn.commit()

    def load_meta(self) -> Dict[str, Any]:
        """Load session counters."""
        with sqlite3.connect(self.db_path) as conn:
            rows = conn.execute("SELECT key, value FROM session_meta").fetchall()
        return {key: json.loads(value) for key, value in rows}

    def save_session(self, session):
        """
        Save the full state of an ArenaSession.

        Args:
            session: ArenaSession to save
        """
        self.save_roster(session.competitors)
        self.save_history(session.history)
        for tournament in session.tournaments.values():
            self.save_tournament(tournament)
        self.save_meta({
            "duel_count": session.duel_count,
            "seasons_played": session.seasons_played,
            "unlocked_divisions": session.unlocked_divisions,
        })

    def load_session(self, config=None):
        """
        Restore an ArenaSession saved with save_session.

        Args:
            config: SessionConfig for the restored session (defaults if None)

        Returns:
            ArenaSession with roster, history, tournaments and counters
        """
        from src.arena.session import ArenaSession

        session = ArenaSession(config)
        for competitor in self.load_roster():
            session.roster[competitor.competitor_id] = competitor
        session.history = self.load_history()
        for tournament in self.load_tournaments():
            session.tournaments[tournament.tournament_id] = tournament

        meta = self.load_meta()
        session.duel_count = meta.get("duel_count", 0)
        session.seasons_played = meta.get("seasons_played", 0)
        session.unlocked_divisions = meta.get("unlocked_divisions", session.unlocked_divisions)
        return session
