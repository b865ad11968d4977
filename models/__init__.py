"""Models package: exposes the process-wide DBStorage instance.

The engine is bound by api.create_app() from the app config.
"""
from models.db_storage import DBStorage

storage = DBStorage()
