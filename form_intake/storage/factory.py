from form_intake.config import StorageConfig
from .memory_store import InMemoryTabularStore
from .mongo_store import MongoTabularStore
from .mysql_store import MySQLTabularStore
from .tabular_store import TabularStore


def create_store(config: StorageConfig) -> TabularStore:
    """
    Build the TabularStore selected by STORAGE_BACKEND.

    Database-backed stores connect lazily on first use.
    """
    if config.backend == "mysql":
        return MySQLTabularStore(
            host=config.mysql.host,
            port=config.mysql.port,
            user=config.mysql.user,
            password=config.mysql.password,
            database=config.mysql.database
        )
    if config.backend == "mongo":
        return MongoTabularStore(
            host=config.mongo.host,
            port=config.mongo.port,
            database=config.mongo.database,
            user=config.mongo.user,
            password=config.mongo.password
        )
    return InMemoryTabularStore()
