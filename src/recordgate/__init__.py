"""Action dispatch and entity pipeline for FastAPI over SQLAlchemy records."""
