"""
Custom BOQ category cache (SQLite implementation)
Keeps categories a user added for a project before any item uses them
"""
import sqlite3
import logging
from typing import Iterable, List
from datetime import datetime
from config import Config

logger = logging.getLogger(__name__)


class CategoryStore:
    """Per-project list of custom categories, layered over server categories"""

    def __init__(self, db_path: str = None):
        self.db_path = db_path or Config.CATEGORY_CACHE_PATH
        self.conn = None
        self._init_database()

    def _init_database(self):
        """Create database schema if not exists"""
        self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row

        cursor = self.conn.cursor()
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS custom_categories (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                project_id TEXT NOT NULL,
                name TEXT NOT NULL,
                created_at TEXT,
                UNIQUE (project_id, name)
            )
        """)
        self.conn.commit()
        logger.info(f"Category cache initialized: {self.db_path}")

    def read(self, project_id: str) -> List[str]:
        """Custom categories for a project, in the order they were added"""
        cursor = self.conn.cursor()
        cursor.execute("""
            SELECT name FROM custom_categories
            WHERE project_id = ?
            ORDER BY id
        """, (project_id,))
        return [row["name"] for row in cursor.fetchall()]

    def add(self, project_id: str, name: str) -> List[str]:
        """Add one category (trimmed); duplicates and blanks are ignored"""
        name = (name or "").strip()
        if name:
            self._insert(project_id, [name])
        return self.read(project_id)

    def write(self, project_id: str, names: Iterable[str]):
        """Replace the cached list for a project"""
        cleaned = list(dict.fromkeys(n.strip() for n in names if n and n.strip()))
        try:
            cursor = self.conn.cursor()
            cursor.execute("DELETE FROM custom_categories WHERE project_id = ?", (project_id,))
            self._insert(project_id, cleaned, commit=False)
            self.conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Category write failed for project {project_id}: {e}")
            self.conn.rollback()
            raise

    def merge(self, project_id: str, server_categories: Iterable[str]) -> List[str]:
        """Set union of server and cached categories, sorted for display"""
        names = {c for c in server_categories if c}
        names.update(self.read(project_id))
        return sorted(names)

    def _insert(self, project_id: str, names: List[str], commit: bool = True):
        now = datetime.now().isoformat()
        try:
            cursor = self.conn.cursor()
            cursor.executemany("""
                INSERT OR IGNORE INTO custom_categories (project_id, name, created_at)
                VALUES (?, ?, ?)
            """, [(project_id, name, now) for name in names])
            if commit:
                self.conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Category insert failed for project {project_id}: {e}")
            self.conn.rollback()
            raise

    def close(self):
        """Close database connection"""
        if self.conn:
            self.conn.close()
