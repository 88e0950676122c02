"""Database access: ORM models, engine builder, sessions, repositories."""
