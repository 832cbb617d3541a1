"""
Defines the database schema for vocabcore using a SQL string constant.
Timestamps are stored as naive UTC; db_utils converts at the boundary.
"""

DB_SCHEMA_SQL = """
    CREATE TABLE IF NOT EXISTS cards (
        uuid UUID PRIMARY KEY,
        owner_id VARCHAR NOT NULL,
        course_id VARCHAR,
        front VARCHAR NOT NULL,
        back VARCHAR NOT NULL,
        example VARCHAR,
        category VARCHAR NOT NULL,
        difficulty VARCHAR NOT NULL,
        repetitions INTEGER NOT NULL DEFAULT 0 CHECK (repetitions >= 0),
        easiness_factor DOUBLE NOT NULL DEFAULT 2.5 CHECK (easiness_factor >= 1.3),
        interval_days INTEGER NOT NULL DEFAULT 1 CHECK (interval_days >= 1),
        last_reviewed TIMESTAMP,
        next_review TIMESTAMP,
        created_at TIMESTAMP NOT NULL,
        modified_at TIMESTAMP NOT NULL
    );

    CREATE INDEX IF NOT EXISTS idx_cards_owner_id ON cards (owner_id);
"""
