import logging
import sqlite3
from pathlib import Path
from sqlalchemy import create_engine, event
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from signpad.config import Settings, settings
from signpad.errors import ConfigurationError
from signpad.utils.filesystem import ensure_upload_dir

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


def _set_sqlite_pragmas(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


def get_engine(db_path: Path | None = None):
    path = db_path or settings.db_path
    engine = create_engine(
        f"sqlite:///{path}",
        connect_args={"check_same_thread": False},
    )
    event.listen(engine, "connect", _set_sqlite_pragmas)
    return engine


engine = get_engine()
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


SCHEMA_SQL = """\
-- ============================================================
-- FORM SUBMISSIONS
-- ============================================================
CREATE TABLE IF NOT EXISTS form_submissions (
    id                  INTEGER PRIMARY KEY AUTOINCREMENT,
    full_name           TEXT NOT NULL,
    email               TEXT NOT NULL,
    company             TEXT,
    signature_method    TEXT NOT NULL CHECK(signature_method IN ('drawn','typed')),
    signature_data      TEXT,
    signature_file_png  TEXT,
    signature_file_webp TEXT,
    signature_file_svg  TEXT,
    agree_terms         INTEGER NOT NULL DEFAULT 0 CHECK(agree_terms IN (0,1)),
    ip_address          TEXT,
    user_agent          TEXT,
    submitted_at        TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now'))
);

CREATE INDEX IF NOT EXISTS idx_form_submissions_email ON form_submissions(email);
CREATE INDEX IF NOT EXISTS idx_form_submissions_submitted_at ON form_submissions(submitted_at);
"""


def init_db(db_path: Path | None = None):
    path = db_path or settings.db_path
    conn = sqlite3.connect(str(path))
    try:
        conn.executescript(SCHEMA_SQL)
    finally:
        conn.close()


def bootstrap_storage(cfg: Settings) -> None:
    """Make sure the upload directory and the submissions table exist.

    Both steps are idempotent, so this is safe to run before every request.
    """
    try:
        ensure_upload_dir(cfg.upload_path)
    except OSError as exc:
        logger.error("Failed to create upload directory - Context: %s",
                     {"path": str(cfg.upload_path), "error": str(exc)})
        raise ConfigurationError("Upload directory setup failed.", detail=str(exc)) from exc

    try:
        init_db(cfg.db_path)
    except sqlite3.Error as exc:
        logger.error("Table creation failed - Context: %s", {"error": str(exc)})
        raise ConfigurationError("Database setup error. Please contact support.", detail=str(exc)) from exc
