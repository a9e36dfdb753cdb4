import abc
from typing import Any, Dict, Optional


class SessionStorePort(abc.ABC):
    """Opaque persistence for finished results: accept JSON, later return the same JSON."""

    @abc.abstractmethod
    async def save(self, session_id: str, payload: Dict[str, Any]) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def load(self, session_id: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError
