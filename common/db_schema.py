# Database schema definitions and initialization utilities
# SQLite storage for the high score table

import logging
import os
import sqlite3

from common import config

logger = logging.getLogger(__name__)

HIGH_SCORES_TABLE = """
CREATE TABLE IF NOT EXISTS high_scores (
    id INTEGER PRIMARY KEY,
    player_name TEXT,
    score INTEGER,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
)
"""

def open_database(db_path: str = config.DB_PATH) -> sqlite3.Connection:
    """
    Opens (and creates, if needed) the SQLite database file.
    ':memory:' opens a throwaway in-memory database.
    """
    if db_path != ':memory:':
        db_dir = os.path.dirname(db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

    conn = sqlite3.connect(db_path)
    logger.info(f"Opened high score database at {db_path}")
    return conn

def initialize_database(db_path: str = config.DB_PATH):
    """
    Opens the database and makes sure the schema exists.
    Returns a HighScoreOperations instance.
    """
    from common.db_operations import HighScoreOperations

    db_ops = HighScoreOperations(open_database(db_path))
    db_ops.create_schema()
    return db_ops
