"""
Database schema for the annotation store.

Tables:
- organizations, accounts
- documents, pages
- projects, project_memberships (project <-> document)
- annotations, comments

Access levels are stored as their integer values (see access_levels.py).
"""

import sqlite3


CREATE_TABLES = [
    """
    CREATE TABLE IF NOT EXISTS organizations (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        slug TEXT NOT NULL DEFAULT ''
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS accounts (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        organization_id INTEGER REFERENCES organizations(id),
        first_name TEXT NOT NULL DEFAULT '',
        last_name TEXT NOT NULL DEFAULT '',
        email TEXT,
        role INTEGER NOT NULL DEFAULT 2
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS documents (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        organization_id INTEGER NOT NULL REFERENCES organizations(id),
        account_id INTEGER NOT NULL REFERENCES accounts(id),
        title TEXT NOT NULL DEFAULT '',
        slug TEXT NOT NULL DEFAULT '',
        access INTEGER NOT NULL,
        comment_access INTEGER NOT NULL,
        cacheable BOOLEAN NOT NULL DEFAULT 0,
        published_url TEXT,
        public_note_count INTEGER NOT NULL DEFAULT 0   -- Denormalized, see aggregation.py
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS pages (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        document_id INTEGER NOT NULL REFERENCES documents(id) ON DELETE CASCADE,
        page_number INTEGER NOT NULL,
        text TEXT NOT NULL DEFAULT '',
        UNIQUE (document_id, page_number)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS projects (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        account_id INTEGER REFERENCES accounts(id),
        title TEXT NOT NULL DEFAULT ''
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS project_memberships (
        project_id INTEGER NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
        document_id INTEGER NOT NULL REFERENCES documents(id) ON DELETE CASCADE,
        PRIMARY KEY (project_id, document_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS project_collaborations (
        project_id INTEGER NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
        account_id INTEGER NOT NULL REFERENCES accounts(id) ON DELETE CASCADE,
        PRIMARY KEY (project_id, account_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS annotations (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        document_id INTEGER NOT NULL REFERENCES documents(id) ON DELETE CASCADE,
        account_id INTEGER NOT NULL,       -- Author, not necessarily the document owner
        organization_id INTEGER NOT NULL,
        page_number INTEGER NOT NULL,
        title TEXT NOT NULL,
        content TEXT,
        access INTEGER NOT NULL,
        comment_access INTEGER NOT NULL,
        location TEXT,                     -- Page coordinates, e.g. "12,300,80,40"
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS comments (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        annotation_id INTEGER NOT NULL REFERENCES annotations(id) ON DELETE CASCADE,
        commenter_id INTEGER,
        organization_id INTEGER,
        access INTEGER NOT NULL DEFAULT 4,
        text TEXT NOT NULL DEFAULT '',
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
]

CREATE_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_annotations_document ON annotations(document_id)",
    "CREATE INDEX IF NOT EXISTS idx_annotations_account ON annotations(account_id)",
    "CREATE INDEX IF NOT EXISTS idx_annotations_access ON annotations(access, organization_id)",
    "CREATE INDEX IF NOT EXISTS idx_memberships_document ON project_memberships(document_id)",
    "CREATE INDEX IF NOT EXISTS idx_collaborations_account ON project_collaborations(account_id)",
    "CREATE INDEX IF NOT EXISTS idx_comments_annotation ON comments(annotation_id)",
]


def initialize_database(conn: sqlite3.Connection, logger=None) -> None:
    """
    Create all tables and indexes.

    Idempotent - safe to call multiple times.

    Args:
        conn: SQLite database connection
        logger: Optional logger instance

    Raises:
        sqlite3.Error: If database initialization fails
    """
    try:
        cursor = conn.cursor()

        if logger:
            logger.info("Creating annotation tables...")

        for table_sql in CREATE_TABLES:
            cursor.execute(table_sql)
        for index_sql in CREATE_INDEXES:
            cursor.execute(index_sql)

        conn.commit()

        if logger:
            logger.info("Database schema initialized successfully")

    except sqlite3.Error as e:
        if logger:
            logger.error(f"Failed to initialize database: {e}")
        raise
