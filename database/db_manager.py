import logging
import os
import sqlite3
import threading
from utils.constants import DB_FILE, DEFAULT_CATEGORIES, DEFAULT_SETTINGS

logger = logging.getLogger(__name__)


class DatabaseManager:
    def __init__(self, db_path: str | None = None):
        self.db_path = db_path or DB_FILE
        self._conn: sqlite3.Connection | None = None
        # The connection is shared across threads; every statement and each
        # write's commit or rollback run under this lock.
        self.lock = threading.RLock()

    def get_connection(self) -> sqlite3.Connection:
        with self.lock:
            if self._conn is None:
                self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
                self._conn.row_factory = sqlite3.Row
                self._conn.execute("PRAGMA foreign_keys = ON")
                self._conn.execute("PRAGMA journal_mode = WAL")
            return self._conn

    def initialize(self):
        """Create schema and seed defaults."""
        conn = self.get_connection()
        with self.lock:
            self._create_schema(conn)
            self._migrate_schema(conn)
            self._seed_defaults(conn)
            conn.commit()

    def _migrate_schema(self, conn: sqlite3.Connection):
        """Idempotent ALTER TABLE for columns added after initial release."""
        cols = {row[1] for row in conn.execute("PRAGMA table_info(recurring_definitions)").fetchall()}
        if "notes" not in cols:
            conn.execute(
                "ALTER TABLE recurring_definitions ADD COLUMN notes TEXT NOT NULL DEFAULT ''"
            )
            logger.info("Migrated recurring_definitions: added notes column")
        tx_cols = {row[1] for row in conn.execute("PRAGMA table_info(transactions)").fetchall()}
        if "notes" not in tx_cols:
            conn.execute("ALTER TABLE transactions ADD COLUMN notes TEXT NOT NULL DEFAULT ''")
            logger.info("Migrated transactions: added notes column")

    def _create_schema(self, conn: sqlite3.Connection):
        # Amounts are stored as TEXT so Decimal values round-trip exactly.
        # transactions.recurring_definition_id has no foreign key: deleting a
        # definition leaves its generated ledger rows (and their back-reference).
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS categories (
                id         INTEGER PRIMARY KEY AUTOINCREMENT,
                name       TEXT NOT NULL UNIQUE,
                type       TEXT NOT NULL CHECK(type IN ('income','expense','both')),
                color_hex  TEXT NOT NULL DEFAULT '#888888'
            );

            CREATE TABLE IF NOT EXISTS recurring_definitions (
                id            INTEGER PRIMARY KEY AUTOINCREMENT,
                description   TEXT NOT NULL,
                type          TEXT NOT NULL CHECK(type IN ('income','expense')),
                amount        TEXT NOT NULL,
                category_id   INTEGER REFERENCES categories(id),
                account_id    INTEGER,
                frequency     TEXT NOT NULL CHECK(frequency IN
                                ('daily','weekly','biweekly','monthly','quarterly','yearly')),
                interval      INTEGER NOT NULL DEFAULT 1 CHECK(interval >= 1),
                day_of_week   INTEGER CHECK(day_of_week BETWEEN 0 AND 6),
                day_of_month  INTEGER CHECK(day_of_month BETWEEN 1 AND 31),
                start_date    TEXT NOT NULL,
                end_date      TEXT,
                is_active     INTEGER NOT NULL DEFAULT 1,
                watermark     TEXT,
                notes         TEXT NOT NULL DEFAULT '',
                created_at    TEXT NOT NULL DEFAULT (datetime('now')),
                CHECK(type = 'income' OR category_id IS NOT NULL),
                CHECK(end_date IS NULL OR end_date >= start_date)
            );

            CREATE TABLE IF NOT EXISTS transactions (
                id                      INTEGER PRIMARY KEY AUTOINCREMENT,
                account_id              INTEGER,
                type                    TEXT NOT NULL CHECK(type IN ('income','expense')),
                amount                  TEXT NOT NULL,
                category_id             INTEGER REFERENCES categories(id) ON DELETE RESTRICT,
                description             TEXT NOT NULL DEFAULT '',
                date                    TEXT NOT NULL,
                recurring_definition_id INTEGER,
                occurrence_date         TEXT,
                notes                   TEXT NOT NULL DEFAULT '',
                created_at              TEXT NOT NULL DEFAULT (datetime('now'))
            );

            CREATE INDEX IF NOT EXISTS idx_transactions_date ON transactions(date);
            CREATE UNIQUE INDEX IF NOT EXISTS idx_transactions_occurrence
                ON transactions(recurring_definition_id, occurrence_date)
                WHERE recurring_definition_id IS NOT NULL;
            CREATE INDEX IF NOT EXISTS idx_recurring_active ON recurring_definitions(is_active);

            CREATE TABLE IF NOT EXISTS app_settings (
                key   TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );
        """)

    def _seed_defaults(self, conn: sqlite3.Connection):
        for key, value in DEFAULT_SETTINGS:
            conn.execute(
                "INSERT OR IGNORE INTO app_settings(key, value) VALUES (?, ?)",
                (key, value),
            )

        for cat in DEFAULT_CATEGORIES:
            conn.execute(
                """INSERT OR IGNORE INTO categories(name, type, color_hex)
                   VALUES (?, ?, ?)""",
                (cat["name"], cat["type"], cat["color_hex"]),
            )

    def get_setting(self, key: str, default: str = "") -> str:
        conn = self.get_connection()
        with self.lock:
            row = conn.execute(
                "SELECT value FROM app_settings WHERE key = ?", (key,)
            ).fetchone()
        return row["value"] if row else default

    def get_bool_setting(self, key: str, default: bool = False) -> bool:
        value = self.get_setting(key, "1" if default else "0")
        return value.strip().lower() in ("1", "true", "yes", "on")

    def set_setting(self, key: str, value: str):
        conn = self.get_connection()
        with self.lock:
            conn.execute(
                "INSERT OR REPLACE INTO app_settings(key, value) VALUES (?, ?)",
                (key, value),
            )
            conn.commit()

    @staticmethod
    def open(db_folder: str | None = None) -> "DatabaseManager":
        """Startup factory: opens (creating if needed) the DB in db_folder or the CWD."""
        if db_folder:
            os.makedirs(db_folder, exist_ok=True)
            path = os.path.join(db_folder, DB_FILE)
        else:
            path = DB_FILE
        db = DatabaseManager(path)
        db.initialize()
        logger.info("Opened database %s", path)
        return db

    def close(self):
        with self.lock:
            if self._conn:
                self._conn.close()
                self._conn = None
