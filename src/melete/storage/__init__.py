"""Session repositories, long-term stores and user directories."""

from melete.storage.base import LongTermMemoryStore, SessionRepository, UserDirectory
from melete.storage.long_term import MCPLongTermStore
from melete.storage.memory_store import InMemoryLongTermStore, InMemorySessionRepository
from melete.storage.sqlite_store import SqliteSessionRepository
from melete.storage.users import PassthroughUserDirectory, StaticUserDirectory

__all__ = [
    "SessionRepository",
    "LongTermMemoryStore",
    "UserDirectory",
    "InMemorySessionRepository",
    "InMemoryLongTermStore",
    "SqliteSessionRepository",
    "MCPLongTermStore",
    "PassthroughUserDirectory",
    "StaticUserDirectory",
]
