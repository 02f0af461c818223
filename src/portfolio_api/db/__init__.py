"""
portfolio_api.db

Persistence package (SQLAlchemy async).

Responsibilities:
- Provide ORM models, engine/session setup, the partitioned document store, and repositories.
"""

# Package marker.
