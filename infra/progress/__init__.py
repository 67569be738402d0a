"""
Progress repository implementations (infra adapters).

- `infra.progress.http_repository.HttpProgressRepository`: document store behind the progress API
- `infra.progress.sql_repository.SqlProgressRepository`: relational store via SQLAlchemy
"""

__all__ = []
