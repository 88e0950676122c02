"""Database session management.

The engine and session factory are built by the app factory from
``AppConfig`` and stored on ``app.state``; ``get_db`` hands out one session
per request.
"""

from typing import Generator

from fastapi import Request
from sqlalchemy.orm import Session


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Get database session.

    Yields:
        Session: SQLAlchemy session
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
