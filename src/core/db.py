"""SQLite database layer for jobs, talent profiles, matches and assignments."""

import sqlite3
from pathlib import Path

_JOB_POSTS_TABLE = """
CREATE TABLE IF NOT EXISTS job_posts (
    id                  TEXT    PRIMARY KEY,
    user_id             TEXT    NOT NULL,
    title               TEXT    NOT NULL DEFAULT '',
    budget              INTEGER NOT NULL DEFAULT 0,
    daily_rate          INTEGER,
    work_days           INTEGER NOT NULL DEFAULT 1,
    skill_tags          TEXT    NOT NULL DEFAULT '[]',
    preferred_carriers  TEXT    NOT NULL DEFAULT '[]',
    work_type           TEXT    NOT NULL DEFAULT 'any',
    status              TEXT    NOT NULL DEFAULT 'draft',
    is_hot              INTEGER NOT NULL DEFAULT 0,
    created_at          TEXT    NOT NULL,
    updated_at          TEXT    NOT NULL
);
"""

_TALENT_PROFILES_TABLE = """
CREATE TABLE IF NOT EXISTS talent_profiles (
    id                  TEXT    PRIMARY KEY,
    user_id             TEXT    NOT NULL,
    name                TEXT    NOT NULL DEFAULT '',
    rate                INTEGER NOT NULL DEFAULT 0,
    experience_years    INTEGER NOT NULL DEFAULT 0,
    skills              TEXT    NOT NULL DEFAULT '[]',
    preferred_carriers  TEXT    NOT NULL DEFAULT '[]',
    work_type           TEXT    NOT NULL DEFAULT 'any',
    status              TEXT    NOT NULL DEFAULT 'available',
    is_hot              INTEGER NOT NULL DEFAULT 0,
    created_at          TEXT    NOT NULL,
    updated_at          TEXT    NOT NULL
);
"""

_MATCHES_TABLE = """
CREATE TABLE IF NOT EXISTS matches (
    id                  TEXT    PRIMARY KEY,
    job_post_id         TEXT    NOT NULL REFERENCES job_posts(id),
    talent_profile_id   TEXT    NOT NULL REFERENCES talent_profiles(id),
    proposer_id         TEXT    NOT NULL,
    proposer_type       TEXT    NOT NULL DEFAULT 'broker',
    message             TEXT,
    status              TEXT    NOT NULL DEFAULT 'pending',
    assignment_type     TEXT,
    created_at          TEXT    NOT NULL,
    updated_at          TEXT    NOT NULL
);
"""

_ASSIGNMENTS_TABLE = """
CREATE TABLE IF NOT EXISTS assignments (
    id                  TEXT    PRIMARY KEY,
    match_id            TEXT    NOT NULL UNIQUE REFERENCES matches(id),
    job_post_id         TEXT    NOT NULL,
    talent_profile_id   TEXT    NOT NULL,
    client_user_id      TEXT    NOT NULL,
    talent_user_id      TEXT    NOT NULL,
    status              TEXT    NOT NULL DEFAULT 'active',
    monthly_profit      INTEGER NOT NULL DEFAULT 0,
    total_profit        INTEGER NOT NULL DEFAULT 0,
    notes               TEXT    NOT NULL DEFAULT '',
    start_date          TEXT    NOT NULL,
    end_date            TEXT,
    created_at          TEXT    NOT NULL,
    updated_at          TEXT    NOT NULL
);
"""

# entity name -> (columns, JSON-encoded list columns, boolean columns)
ENTITY_COLUMNS: dict[str, tuple[tuple[str, ...], frozenset[str], frozenset[str]]] = {
    "job_posts": (
        (
            "id", "user_id", "title", "budget", "daily_rate", "work_days",
            "skill_tags", "preferred_carriers", "work_type", "status", "is_hot",
            "created_at", "updated_at",
        ),
        frozenset({"skill_tags", "preferred_carriers"}),
        frozenset({"is_hot"}),
    ),
    "talent_profiles": (
        (
            "id", "user_id", "name", "rate", "experience_years", "skills",
            "preferred_carriers", "work_type", "status", "is_hot",
            "created_at", "updated_at",
        ),
        frozenset({"skills", "preferred_carriers"}),
        frozenset({"is_hot"}),
    ),
    "matches": (
        (
            "id", "job_post_id", "talent_profile_id", "proposer_id",
            "proposer_type", "message", "status", "assignment_type",
            "created_at", "updated_at",
        ),
        frozenset(),
        frozenset(),
    ),
    "assignments": (
        (
            "id", "match_id", "job_post_id", "talent_profile_id",
            "client_user_id", "talent_user_id", "status", "monthly_profit",
            "total_profit", "notes", "start_date", "end_date",
            "created_at", "updated_at",
        ),
        frozenset(),
        frozenset(),
    ),
}


def init_db(path: str | Path) -> sqlite3.Connection:
    """Create the database and tables, returning a connection."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    conn.execute(_JOB_POSTS_TABLE)
    conn.execute(_TALENT_PROFILES_TABLE)
    conn.execute(_MATCHES_TABLE)
    conn.execute(_ASSIGNMENTS_TABLE)
    conn.commit()
    return conn
