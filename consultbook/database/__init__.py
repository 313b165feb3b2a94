from .database import DB, Base, db, filter_by, select


__all__ = ["Base", "DB", "db", "filter_by", "select"]
