"""User directories resolving caller identities to owner ids."""

from typing import Dict, Optional


class PassthroughUserDirectory:
    """Treats the caller identity as the owner id."""

    async def resolve(self, subject: str) -> Optional[str]:
        return subject or None


class StaticUserDirectory:
    """Fixed mapping of identity subjects to owner ids."""

    def __init__(self, users: Dict[str, str]):
        self.users = dict(users)

    async def resolve(self, subject: str) -> Optional[str]:
        return self.users.get(subject)
