# Database CRUD operations
# Clean interface for the high score table

import logging
import sqlite3
from typing import List, Optional

from common import config
from common.db_schema import HIGH_SCORES_TABLE

logger = logging.getLogger(__name__)


class HighScoreRecord:
    """One leaderboard entry."""

    def __init__(self, name: str, score: int):
        self.name = name
        self.score = score

    def __repr__(self):
        return f"HighScoreRecord({self.name!r}, {self.score})"

    def __eq__(self, other):
        if not isinstance(other, HighScoreRecord):
            return NotImplemented
        return (self.name, self.score) == (other.name, other.score)


class HighScoreOperations:
    """High score storage backed by SQLite.

    Errors from sqlite3 propagate to the caller: a broken database cannot
    be safely continued.
    """

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def create_schema(self):
        with self.conn:
            self.conn.execute(HIGH_SCORES_TABLE)

    def count(self) -> int:
        row = self.conn.execute("SELECT COUNT(*) FROM high_scores").fetchone()
        return row[0]

    def get_record_at_rank(self, rank: int) -> Optional[HighScoreRecord]:
        """Record at a 1-based rank, highest score first."""
        if rank < 1:
            raise ValueError(f"Rank must be 1 or greater, got {rank}")
        row = self.conn.execute(
            "SELECT player_name, score FROM high_scores ORDER BY score DESC LIMIT 1 OFFSET ?",
            (rank - 1,)
        ).fetchone()
        if row is None:
            return None
        return HighScoreRecord(row[0], row[1])

    def get_top_records(self, n: int = config.HIGH_SCORE_TABLE_SIZE) -> List[HighScoreRecord]:
        rows = self.conn.execute(
            "SELECT player_name, score FROM high_scores ORDER BY score DESC LIMIT ?",
            (n,)
        ).fetchall()
        return [HighScoreRecord(name, score) for name, score in rows]

    def insert(self, name: str, score: int):
        with self.conn:
            self.conn.execute(
                "INSERT INTO high_scores (player_name, score) VALUES (?, ?)",
                (name, score)
            )
        logger.info(f"Saved high score: {name} ({score})")

    def close(self):
        self.conn.close()


def qualifies_for_leaderboard(db_ops, score: int, table_size: int = config.HIGH_SCORE_TABLE_SIZE) -> bool:
    """
    Checks if a final score earns a place in the top `table_size`.
    A score of 0 never qualifies.
    """
    if score <= 0:
        return False
    if db_ops.count() < table_size:
        return True
    lowest = db_ops.get_record_at_rank(table_size)
    return lowest is None or score > lowest.score
