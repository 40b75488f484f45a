"""Store backends"""
from ..config import Config
from .database import BaseDatabase, Database, Session
from .memory import MemoryDatabase

BACKENDS = {
    'postgres': Database,
    'memory': MemoryDatabase,
}

def create_database(backend: str = None) -> BaseDatabase:
    """Build the store backend named by STORE_BACKEND"""
    backend = (backend or Config.STORE_BACKEND).lower()
    if backend not in BACKENDS:
        raise ValueError(f"Unknown STORE_BACKEND: {backend}")
    return BACKENDS[backend]()

__all__ = [
    'BaseDatabase',
    'Database',
    'MemoryDatabase',
    'Session',
    'create_database',
]
