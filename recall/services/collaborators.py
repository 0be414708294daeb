"""
Contracts for the external collaborators the stores talk to.

Every method is a coroutine. Implementations raise AuthenticationError or
RemoteError from ``recall.services.errors``; anything else is treated as a
RemoteError by the calling store.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..models.core import AnalyticsSnapshot, Connector, Identity, Memory, Preferences, Session


class AuthCollaborator(ABC):

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> Session:
        ...

    @abstractmethod
    async def sign_up(self, email: str, password: str, name: str) -> Session:
        ...

    @abstractmethod
    async def sign_in_with_provider(self, provider: str) -> Session:
        ...

    @abstractmethod
    async def sign_out(self, session: Session) -> None:
        ...

    async def restore(self) -> Optional[Session]:
        """Return a previously persisted session, if the collaborator keeps one."""
        return None


class MemoryCollaborator(ABC):

    @abstractmethod
    async def list(self, session: Session) -> List[Memory]:
        ...

    @abstractmethod
    async def create(self, session: Session, memory: Memory) -> Memory:
        ...

    @abstractmethod
    async def update(self, session: Session, memory: Memory) -> Memory:
        ...

    @abstractmethod
    async def delete(self, session: Session, memory_id: str) -> None:
        ...

    @abstractmethod
    async def keyword_search(self, session: Session, query: str) -> List[Memory]:
        ...

    @abstractmethod
    async def semantic_search(self, session: Session, query: str, top_k: int) -> List[Memory]:
        ...


class ConnectorCollaborator(ABC):

    @abstractmethod
    async def list(self, session: Session) -> List[Connector]:
        ...

    @abstractmethod
    async def set_enabled(self, session: Session, connector_id: str, enabled: bool) -> None:
        ...

    @abstractmethod
    async def configure(self, session: Session, connector_id: str, settings: Dict[str, Any]) -> bool:
        """Post settings; returns True only when the backend confirms them."""
        ...


class AnalyticsCollaborator(ABC):

    @abstractmethod
    async def fetch(self, session: Session) -> Optional[AnalyticsSnapshot]:
        """Fetch stats and insights; None means nothing has been computed yet."""
        ...


class TelemetryCollaborator(ABC):

    @abstractmethod
    async def track(self, session: Optional[Session], name: str, attributes: Dict[str, Any]) -> None:
        ...


class PreferenceCollaborator(ABC):

    @abstractmethod
    async def save(self, session: Session, preferences: Preferences) -> None:
        ...

    @abstractmethod
    async def export(self, session: Session) -> Dict[str, Any]:
        ...

    @abstractmethod
    async def delete_account(self, session: Session) -> None:
        ...


class AnswerCollaborator(ABC):

    @abstractmethod
    async def answer(self, identity: Identity, question: str, memories: List[Memory]) -> str:
        ...

    async def cite(self, answer: str, memories: List[Memory]) -> Dict[str, List[str]]:
        """Map answer sentences to the ids of memories that support them."""
        return {}
