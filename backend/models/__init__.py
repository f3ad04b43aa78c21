from .base import Base, Database, get_db
from .stored_file import StoredFile

__all__ = [
    "Base",
    "Database",
    "get_db",
    "StoredFile",
]
