"""
SQLite Database Manager for MediaStack
Holds the general settings and the small JSON blobs the UI keeps between sessions
(toast settings, timezone, auth token, custom filters, notifications).
"""

import json
import sqlite3
from pathlib import Path
from typing import Dict, Any, Optional
import logging
import time

logger = logging.getLogger(__name__)


class MediaStackDatabase:
    """Database manager for MediaStack settings and persisted UI state"""

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = Path(db_path) if db_path else self._get_database_path()
        self.ensure_database_exists()

    def _configure_connection(self, conn):
        """Configure SQLite connection with cross-platform compatible settings"""
        try:
            try:
                conn.execute('PRAGMA journal_mode = WAL')
            except Exception as wal_error:
                logger.warning(f"WAL mode failed, using DELETE mode: {wal_error}")
                conn.execute('PRAGMA journal_mode = DELETE')
            conn.execute('PRAGMA synchronous = NORMAL')
            conn.execute('PRAGMA busy_timeout = 30000')
        except Exception as e:
            logger.error(f"Error configuring database connection: {e}")

    def get_connection(self):
        """Get a configured SQLite connection"""
        try:
            conn = sqlite3.connect(self.db_path)
            self._configure_connection(conn)
            return conn
        except (sqlite3.DatabaseError, sqlite3.OperationalError) as e:
            if "file is not a database" in str(e) or "database disk image is malformed" in str(e):
                logger.error(f"Database corruption detected: {e}")
                self._handle_database_corruption()
                conn = sqlite3.connect(self.db_path)
                self._configure_connection(conn)
                return conn
            raise

    def _get_database_path(self) -> Path:
        """Database path lives next to the logs in the resolved config directory"""
        from mediastack.utils.config_paths import DB_PATH
        return DB_PATH

    def _handle_database_corruption(self):
        """Move a corrupted database aside so a fresh one can be created"""
        logger.error(f"Handling database corruption for: {self.db_path}")
        if self.db_path.exists():
            backup_path = self.db_path.parent / f"mediastack_corrupted_backup_{int(time.time())}.db"
            self.db_path.rename(backup_path)
            logger.warning(f"Corrupted database backed up to: {backup_path}")

    def ensure_database_exists(self):
        """Create database and all tables if they don't exist"""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._create_all_tables()
        except (sqlite3.DatabaseError, sqlite3.OperationalError) as e:
            if "file is not a database" in str(e) or "database disk image is malformed" in str(e):
                logger.error(f"Database corruption detected during table creation: {e}")
                self._handle_database_corruption()
                self._create_all_tables()
            else:
                raise

    def _create_all_tables(self):
        """Create all database tables"""
        with self.get_connection() as conn:
            conn.execute('''
                CREATE TABLE IF NOT EXISTS general_settings (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    setting_key TEXT NOT NULL UNIQUE,
                    setting_value TEXT NOT NULL,
                    setting_type TEXT DEFAULT 'string',
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            ''')

            # Browser localStorage equivalent: one JSON value per key
            conn.execute('''
                CREATE TABLE IF NOT EXISTS local_storage (
                    storage_key TEXT PRIMARY KEY,
                    storage_value TEXT NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            ''')
            conn.commit()
            logger.debug(f"Database initialized at: {self.db_path}")

    # --- General settings ---

    def get_general_settings(self) -> Dict[str, Any]:
        """Get all general settings as a dictionary"""
        with self.get_connection() as conn:
            conn.row_factory = sqlite3.Row
            cursor = conn.execute(
                'SELECT setting_key, setting_value, setting_type FROM general_settings'
            )

            settings = {}
            for row in cursor.fetchall():
                key = row['setting_key']
                value = row['setting_value']
                setting_type = row['setting_type']

                if setting_type == 'boolean':
                    settings[key] = value.lower() == 'true'
                elif setting_type == 'integer':
                    settings[key] = int(value)
                elif setting_type == 'float':
                    settings[key] = float(value)
                elif setting_type == 'json':
                    try:
                        settings[key] = json.loads(value)
                    except json.JSONDecodeError:
                        settings[key] = value
                else:
                    settings[key] = value

            return settings

    def save_general_settings(self, settings: Dict[str, Any]):
        """Save general settings to database"""
        with self.get_connection() as conn:
            for key, value in settings.items():
                if isinstance(value, bool):
                    setting_type = 'boolean'
                    setting_value = str(value).lower()
                elif isinstance(value, int):
                    setting_type = 'integer'
                    setting_value = str(value)
                elif isinstance(value, float):
                    setting_type = 'float'
                    setting_value = str(value)
                elif isinstance(value, (list, dict)):
                    setting_type = 'json'
                    setting_value = json.dumps(value)
                else:
                    setting_type = 'string'
                    setting_value = '' if value is None else str(value)

                conn.execute('''
                    INSERT OR REPLACE INTO general_settings
                    (setting_key, setting_value, setting_type, updated_at)
                    VALUES (?, ?, ?, CURRENT_TIMESTAMP)
                ''', (key, setting_value, setting_type))

            conn.commit()

    # --- Local storage ---

    def get_local_value(self, key: str, default: Any = None) -> Any:
        """Return the decoded JSON value stored under key, or default."""
        with self.get_connection() as conn:
            row = conn.execute(
                'SELECT storage_value FROM local_storage WHERE storage_key = ?',
                (key,)
            ).fetchone()
        if not row:
            return default
        try:
            return json.loads(row[0])
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse stored value for {key}: {e}")
            return default

    def set_local_value(self, key: str, value: Any):
        """Store value (JSON-encoded) under key."""
        with self.get_connection() as conn:
            conn.execute('''
                INSERT OR REPLACE INTO local_storage (storage_key, storage_value, updated_at)
                VALUES (?, ?, CURRENT_TIMESTAMP)
            ''', (key, json.dumps(value)))
            conn.commit()

    def remove_local_value(self, key: str):
        with self.get_connection() as conn:
            conn.execute('DELETE FROM local_storage WHERE storage_key = ?', (key,))
            conn.commit()


# Global database instance
_database_instance = None


def get_database() -> MediaStackDatabase:
    """Get the global database instance"""
    global _database_instance
    if _database_instance is None:
        _database_instance = MediaStackDatabase()
    return _database_instance
