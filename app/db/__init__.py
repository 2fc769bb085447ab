"""Database package initialization"""
from app.db.database import db, get_db, Database
from app.db import models, queries

__all__ = ["db", "get_db", "Database", "models", "queries"]
