"""
Database Layer for Portfolio Search

SQLite-based project storage.

Features:
- Project CRUD with feature/developer name sets
- Filtering and pagination
- Search index columns (searchable text + embedding)

Usage:
    from database import ProjectRepository

    repo = ProjectRepository()
    repo.create(project)
    indexed = repo.load_projects_with_embedding()
"""

from .repository import ProjectRepository, public_project

__all__ = [
    'ProjectRepository',
    'public_project',
]
