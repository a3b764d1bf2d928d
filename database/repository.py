"""
SQLite Project Repository for Portfolio Search

Provides storage for freelance projects with:
- Project CRUD with find-or-create features and developers
- Filtering and pagination
- Search index fields (searchable text + serialized embedding)
- Transaction support

The search index columns are written only through update_search_fields();
ordinary project writes leave them untouched.

Usage:
    from database.repository import ProjectRepository

    repo = ProjectRepository()
    project = repo.create({"project_title": "Clinic booking", ...})
    indexed = repo.load_projects_with_embedding()
"""

import json
import sqlite3
import uuid
from pathlib import Path
from typing import List, Dict, Any, Optional
from datetime import datetime
from contextlib import contextmanager


# =============================================================================
# Schema
# =============================================================================

SCHEMA = '''
CREATE TABLE IF NOT EXISTS projects (
    id TEXT PRIMARY KEY,
    project_title TEXT NOT NULL,
    client_name TEXT NOT NULL,
    project_source TEXT NOT NULL,
    project_url TEXT,
    category TEXT NOT NULL,
    short_description TEXT NOT NULL,
    platform TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'Pending',
    proposed_budget REAL,
    finalized_budget REAL,
    estimated_duration TEXT NOT NULL,
    delivered_duration TEXT,
    start_date TEXT NOT NULL,
    end_date TEXT,
    tagline TEXT,
    proposal TEXT,

    -- Search index
    searchable_text TEXT,
    embedding TEXT,  -- JSON array

    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS features (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT UNIQUE NOT NULL
);

CREATE TABLE IF NOT EXISTS developers (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT UNIQUE NOT NULL
);

CREATE TABLE IF NOT EXISTS project_features (
    project_id TEXT NOT NULL,
    feature_id INTEGER NOT NULL,
    position INTEGER NOT NULL DEFAULT 0,
    PRIMARY KEY (project_id, feature_id),
    FOREIGN KEY (project_id) REFERENCES projects(id) ON DELETE CASCADE,
    FOREIGN KEY (feature_id) REFERENCES features(id)
);

CREATE TABLE IF NOT EXISTS project_developers (
    project_id TEXT NOT NULL,
    developer_id INTEGER NOT NULL,
    position INTEGER NOT NULL DEFAULT 0,
    PRIMARY KEY (project_id, developer_id),
    FOREIGN KEY (project_id) REFERENCES projects(id) ON DELETE CASCADE,
    FOREIGN KEY (developer_id) REFERENCES developers(id)
);

CREATE INDEX IF NOT EXISTS idx_projects_category ON projects(category);
CREATE INDEX IF NOT EXISTS idx_projects_platform ON projects(platform);
CREATE INDEX IF NOT EXISTS idx_projects_status ON projects(status);
CREATE INDEX IF NOT EXISTS idx_projects_created ON projects(created_at);
'''

# Columns a caller may set on create/update
PROJECT_FIELDS = (
    'project_title', 'client_name', 'project_source', 'project_url',
    'category', 'short_description', 'platform', 'status',
    'proposed_budget', 'finalized_budget', 'estimated_duration',
    'delivered_duration', 'start_date', 'end_date', 'tagline', 'proposal',
)

SEARCH_FIELDS = ('searchable_text', 'embedding')

FILTERABLE = ('category', 'platform', 'status', 'project_source')

DEFAULT_STATUS = 'Pending'


class ProjectRepository:
    """
    Repository for project storage and retrieval.

    Projects are returned as plain dicts with ``features`` and ``developers``
    resolved to ordered name lists.
    """

    def __init__(self, db_path: str = None):
        """
        Initialize the repository.

        Args:
            db_path: Path to SQLite database. Defaults to data/portfolio.db
        """
        if db_path is None:
            db_path = Path(__file__).parent.parent / 'data' / 'portfolio.db'

        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._init_db()

    def _init_db(self):
        """Initialize the database schema."""
        with self._connection() as conn:
            conn.executescript(SCHEMA)

    @contextmanager
    def _connection(self):
        """Get a database connection with proper cleanup."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        conn.execute('PRAGMA foreign_keys = ON')
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    # =========================================================================
    # CRUD Operations
    # =========================================================================

    def create(self, project: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert a new project.

        Args:
            project: Project fields plus optional 'features'/'developers' lists

        Returns:
            The stored project
        """
        project_id = project.get('id') or uuid.uuid4().hex
        now = datetime.now().isoformat()

        data = {key: project.get(key) for key in PROJECT_FIELDS}
        if not data.get('status'):
            data['status'] = DEFAULT_STATUS

        columns = ['id'] + list(PROJECT_FIELDS) + ['created_at', 'updated_at']
        values = [project_id] + [data[key] for key in PROJECT_FIELDS] + [now, now]

        sql = f'''
            INSERT INTO projects ({', '.join(columns)})
            VALUES ({', '.join('?' for _ in columns)})
        '''

        with self._connection() as conn:
            conn.execute(sql, values)
            self._set_names(conn, project_id, 'feature', project.get('features') or [])
            self._set_names(conn, project_id, 'developer', project.get('developers') or [])

        return self.get(project_id)

    def update(self, project_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Update project fields.

        Only keys present in ``changes`` are written. Passing 'features' or
        'developers' replaces the whole list. Search index fields are ignored.

        Returns:
            The updated project, or None if it does not exist
        """
        assignments = []
        values = []

        for key in PROJECT_FIELDS:
            if key in changes:
                assignments.append(f'{key} = ?')
                values.append(changes[key])

        assignments.append('updated_at = ?')
        values.append(datetime.now().isoformat())

        with self._connection() as conn:
            cursor = conn.execute(
                f'UPDATE projects SET {", ".join(assignments)} WHERE id = ?',
                values + [project_id]
            )
            if cursor.rowcount == 0:
                return None

            if 'features' in changes:
                self._set_names(conn, project_id, 'feature', changes['features'] or [])
            if 'developers' in changes:
                self._set_names(conn, project_id, 'developer', changes['developers'] or [])

        return self.get(project_id)

    def get(self, project_id: str) -> Optional[Dict[str, Any]]:
        """
        Get a project by ID.

        Returns:
            Project dict or None
        """
        with self._connection() as conn:
            row = conn.execute(
                'SELECT * FROM projects WHERE id = ?',
                (project_id,)
            ).fetchone()

            if row is None:
                return None

            return self._row_to_dict(conn, row)

    def delete(self, project_id: str) -> bool:
        """
        Delete a project.

        Returns:
            True if deleted
        """
        with self._connection() as conn:
            cursor = conn.execute(
                'DELETE FROM projects WHERE id = ?',
                (project_id,)
            )
            return cursor.rowcount > 0

    def count(self, filters: Dict[str, Any] = None) -> int:
        """Get total project count with optional filters."""
        where_clause, params = self._build_where(filters)

        with self._connection() as conn:
            row = conn.execute(
                f'SELECT COUNT(*) FROM projects WHERE {where_clause}', params
            ).fetchone()
            return row[0]

    def list_projects(
        self,
        limit: int = 100,
        offset: int = 0,
        filters: Dict[str, Any] = None
    ) -> List[Dict[str, Any]]:
        """List projects, newest first, with optional filters."""
        where_clause, params = self._build_where(filters)

        with self._connection() as conn:
            rows = conn.execute(f'''
                SELECT * FROM projects
                WHERE {where_clause}
                ORDER BY created_at DESC, rowid DESC
                LIMIT ? OFFSET ?
            ''', params + [limit, offset]).fetchall()

            return [self._row_to_dict(conn, row) for row in rows]

    def get_all(self) -> List[Dict[str, Any]]:
        """All projects in creation order (used by batch reindexing)."""
        with self._connection() as conn:
            rows = conn.execute(
                'SELECT * FROM projects ORDER BY created_at, rowid'
            ).fetchall()

            return [self._row_to_dict(conn, row) for row in rows]

    # =========================================================================
    # Search Index
    # =========================================================================

    def load_projects_with_embedding(self) -> List[Dict[str, Any]]:
        """
        All projects that have a stored embedding, in creation order.

        The embedding stays in its serialized (JSON text) form; decoding is
        the caller's job so one corrupt record can be skipped individually.
        """
        with self._connection() as conn:
            rows = conn.execute('''
                SELECT * FROM projects
                WHERE embedding IS NOT NULL
                ORDER BY created_at, rowid
            ''').fetchall()

            return [self._row_to_dict(conn, row) for row in rows]

    def update_search_fields(self, project_id: str, searchable_text: str, embedding: str) -> bool:
        """
        Store a project's searchable text and serialized embedding.

        Does not touch updated_at: indexing is not a user edit.

        Returns:
            True if the project exists
        """
        with self._connection() as conn:
            cursor = conn.execute(
                'UPDATE projects SET searchable_text = ?, embedding = ? WHERE id = ?',
                (searchable_text, embedding, project_id)
            )
            return cursor.rowcount > 0

    def get_index_stats(self) -> Dict[str, int]:
        """Counts of total and indexed projects."""
        with self._connection() as conn:
            total = conn.execute('SELECT COUNT(*) FROM projects').fetchone()[0]
            indexed = conn.execute(
                'SELECT COUNT(*) FROM projects WHERE embedding IS NOT NULL'
            ).fetchone()[0]

        return {'total': total, 'indexed': indexed, 'missing': total - indexed}

    # =========================================================================
    # Helpers
    # =========================================================================

    def _build_where(self, filters: Optional[Dict[str, Any]]):
        filters = filters or {}
        where_parts = []
        params = []

        for key in FILTERABLE:
            if filters.get(key):
                where_parts.append(f'{key} = ?')
                params.append(filters[key])

        where_clause = ' AND '.join(where_parts) if where_parts else '1=1'
        return where_clause, params

    def _set_names(self, conn, project_id: str, kind: str, names: List[str]):
        """Replace a project's feature/developer links, creating names as needed."""
        table = f'{kind}s'
        link_table = f'project_{kind}s'
        link_column = f'{kind}_id'

        conn.execute(f'DELETE FROM {link_table} WHERE project_id = ?', (project_id,))

        seen = set()
        position = 0
        for name in names:
            name = (name or '').strip()
            if not name or name in seen:
                continue
            seen.add(name)

            conn.execute(f'INSERT OR IGNORE INTO {table} (name) VALUES (?)', (name,))
            name_id = conn.execute(
                f'SELECT id FROM {table} WHERE name = ?', (name,)
            ).fetchone()[0]

            conn.execute(
                f'INSERT INTO {link_table} (project_id, {link_column}, position) VALUES (?, ?, ?)',
                (project_id, name_id, position)
            )
            position += 1

    def _get_names(self, conn, project_id: str, kind: str) -> List[str]:
        table = f'{kind}s'
        link_table = f'project_{kind}s'
        link_column = f'{kind}_id'

        rows = conn.execute(f'''
            SELECT t.name FROM {link_table} l
            JOIN {table} t ON t.id = l.{link_column}
            WHERE l.project_id = ?
            ORDER BY l.position
        ''', (project_id,)).fetchall()

        return [row['name'] for row in rows]

    def _row_to_dict(self, conn, row: sqlite3.Row) -> Dict[str, Any]:
        """Convert a database row to a project dict with its name lists."""
        data = dict(row)
        data['features'] = self._get_names(conn, data['id'], 'feature')
        data['developers'] = self._get_names(conn, data['id'], 'developer')
        return data


def public_project(project: Dict[str, Any]) -> Dict[str, Any]:
    """Project without its search index fields (the API/read projection)."""
    return {key: value for key, value in project.items() if key not in SEARCH_FIELDS}


# =============================================================================
# CLI
# =============================================================================

if __name__ == '__main__':
    import argparse

    parser = argparse.ArgumentParser(description="Portfolio Database Management")
    parser.add_argument('action', choices=['stats', 'list'],
                        help="Action to perform")
    parser.add_argument('--db', help="Database path")

    args = parser.parse_args()

    repo = ProjectRepository(args.db)

    if args.action == 'stats':
        print(json.dumps(repo.get_index_stats(), indent=2))

    elif args.action == 'list':
        for p in repo.list_projects(limit=50):
            indexed = 'indexed' if p.get('embedding') else 'not indexed'
            print(f"- {p['project_title']} ({p['category']}, {indexed})")
