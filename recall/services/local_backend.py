"""
In-process collaborators for development and tests.

The auth collaborator is a mock: it accepts any credentials and fabricates
an identity, exactly like the hosted demo. Nothing here persists across
process restarts.
"""

import re
import secrets
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional

from ..models.core import AnalyticsSnapshot, Connector, Identity, Memory, Preferences, Session
from ..utils.config import SessionConfig
from ..utils.logging_config import get_logger
from ..utils.timestamp_utils import to_iso, utc_now
from .collaborators import (AnalyticsCollaborator, AnswerCollaborator, AuthCollaborator, ConnectorCollaborator,
                            MemoryCollaborator, PreferenceCollaborator, TelemetryCollaborator)
from .errors import RemoteError
from .insights import compute_usage, rule_based_insights

logger = get_logger(__name__)

CONNECTOR_CATALOG = (
    ('gmail', 'Gmail'),
    ('google_drive', 'Google Drive'),
    ('notion', 'Notion'),
    ('slack', 'Slack'),
    ('twitter', 'Twitter'),
    ('youtube', 'YouTube'),
    ('instagram', 'Instagram'),
    ('github', 'GitHub'),
    ('spotify', 'Spotify'),
    ('pocket', 'Pocket'),
)

_WORD = re.compile(r'\w+')


def _tokens(text: str) -> set:
    return {word for word in _WORD.findall(text.lower()) if len(word) > 2}


def fabricate_identity(email: str, name: Optional[str] = None, premium: bool = False) -> Identity:
    return Identity(id=secrets.token_hex(6),
                    email=email,
                    name=name or email.split('@')[0] or 'User',
                    avatar=None,
                    is_premium=premium,
                    preferences=Preferences())


class LocalAuthCollaborator(AuthCollaborator):

    def __init__(self, config: SessionConfig, premium_emails: Iterable[str] = ()):
        self.config = config
        self.premium_emails = {email.lower() for email in premium_emails}

    def _session(self, email: str, name: Optional[str] = None, token: str = 'local-session-token') -> Session:
        identity = fabricate_identity(email, name, premium=email.lower() in self.premium_emails)
        return Session(identity=identity, token=f'{token}-{identity.id}')

    async def sign_in(self, email: str, password: str) -> Session:
        return self._session(email)

    async def sign_up(self, email: str, password: str, name: str) -> Session:
        return self._session(email, name)

    async def sign_in_with_provider(self, provider: str) -> Session:
        return self._session(self.config.google_email, self.config.google_name, token=f'local-{provider}-session')

    async def sign_out(self, session: Session) -> None:
        return None


class LocalMemoryCollaborator(MemoryCollaborator):
    """Memories kept per identity id, newest first in listings."""

    def __init__(self, seed: Optional[Dict[str, List[Memory]]] = None):
        self._memories: Dict[str, Dict[str, Memory]] = {}
        for user_id, memories in (seed or {}).items():
            self._memories[user_id] = {memory.id: memory for memory in memories}

    def _bucket(self, session: Session) -> Dict[str, Memory]:
        return self._memories.setdefault(session.identity.id, {})

    def all_for(self, user_id: str) -> List[Memory]:
        return sorted(self._memories.get(user_id, {}).values(), key=lambda m: m.created_at, reverse=True)

    def drop(self, user_id: str) -> None:
        self._memories.pop(user_id, None)

    async def list(self, session: Session) -> List[Memory]:
        return self.all_for(session.identity.id)

    async def create(self, session: Session, memory: Memory) -> Memory:
        bucket = self._bucket(session)
        if memory.id in bucket:
            raise RemoteError(f'Memory {memory.id} already exists')
        bucket[memory.id] = memory
        return memory

    async def update(self, session: Session, memory: Memory) -> Memory:
        bucket = self._bucket(session)
        if memory.id not in bucket:
            raise RemoteError(f'Memory {memory.id} does not exist')
        bucket[memory.id] = memory
        return memory

    async def delete(self, session: Session, memory_id: str) -> None:
        if self._bucket(session).pop(memory_id, None) is None:
            raise RemoteError(f'Memory {memory_id} does not exist')

    async def keyword_search(self, session: Session, query: str) -> List[Memory]:
        return [memory for memory in self.all_for(session.identity.id) if memory.matches(query)]

    async def semantic_search(self, session: Session, query: str, top_k: int) -> List[Memory]:
        """Rank by word overlap between the query and each memory's text and tags."""
        query_tokens = _tokens(query)
        if not query_tokens:
            return []

        scored = []
        for memory in self.all_for(session.identity.id):
            memory_tokens = _tokens(' '.join([memory.title, memory.content] + memory.tags))
            overlap = len(query_tokens & memory_tokens)
            if overlap:
                scored.append((overlap / len(query_tokens | memory_tokens), memory))

        scored.sort(key=lambda item: item[0], reverse=True)
        return [memory for _, memory in scored[:top_k]]


class LocalConnectorCollaborator(ConnectorCollaborator):

    def __init__(self, catalog=CONNECTOR_CATALOG):
        self.catalog = catalog
        self._connectors: Dict[str, Dict[str, Connector]] = {}

    def _bucket(self, session: Session) -> Dict[str, Connector]:
        user_id = session.identity.id
        if user_id not in self._connectors:
            self._connectors[user_id] = {cid: Connector(id=cid, name=name) for cid, name in self.catalog}
        return self._connectors[user_id]

    def _get(self, session: Session, connector_id: str) -> Connector:
        bucket = self._bucket(session)
        if connector_id not in bucket:
            raise RemoteError(f'Unsupported connector: {connector_id}')
        return bucket[connector_id]

    def drop(self, user_id: str) -> None:
        self._connectors.pop(user_id, None)

    async def list(self, session: Session) -> List[Connector]:
        return list(self._bucket(session).values())

    async def set_enabled(self, session: Session, connector_id: str, enabled: bool) -> None:
        connector = self._get(session, connector_id)
        self._bucket(session)[connector_id] = replace(connector, enabled=enabled)

    async def configure(self, session: Session, connector_id: str, settings: Dict[str, Any]) -> bool:
        connector = self._get(session, connector_id)
        self._bucket(session)[connector_id] = replace(connector, config={**connector.config, **settings}, needs_setup=False)
        return True


class LocalAnalyticsCollaborator(AnalyticsCollaborator):
    """Computes analytics on demand from the local memory collaborator."""

    def __init__(self, memories: LocalMemoryCollaborator):
        self.memories = memories

    async def fetch(self, session: Session) -> Optional[AnalyticsSnapshot]:
        memories = self.memories.all_for(session.identity.id)
        if not memories:
            return None
        return AnalyticsSnapshot(usage=compute_usage(memories),
                                 insights=rule_based_insights(memories),
                                 generated_at=utc_now())


class LocalTelemetryCollaborator(TelemetryCollaborator):

    def __init__(self):
        self.events: List[Dict[str, Any]] = []

    async def track(self, session: Optional[Session], name: str, attributes: Dict[str, Any]) -> None:
        self.events.append({'name': name, 'attributes': attributes, 'user_id': session.identity.id if session else None})
        logger.debug(f'Tracked {name}: {attributes}')


class LocalPreferenceCollaborator(PreferenceCollaborator):

    def __init__(self, memories: LocalMemoryCollaborator, connectors: LocalConnectorCollaborator):
        self.memories = memories
        self.connectors = connectors
        self.saved: Dict[str, Preferences] = {}

    async def save(self, session: Session, preferences: Preferences) -> None:
        self.saved[session.identity.id] = preferences

    async def export(self, session: Session) -> Dict[str, Any]:
        identity = replace(session.identity, preferences=self.saved.get(session.identity.id, session.identity.preferences))
        return {
            'exported_at': to_iso(),
            'user': identity,
            'memories': self.memories.all_for(identity.id),
            'connectors': await self.connectors.list(session),
        }

    async def delete_account(self, session: Session) -> None:
        user_id = session.identity.id
        self.memories.drop(user_id)
        self.connectors.drop(user_id)
        self.saved.pop(user_id, None)


class LocalAnswerCollaborator(AnswerCollaborator):
    """Answers by listing the related memories; no language model involved."""

    async def answer(self, identity: Identity, question: str, memories: List[Memory]) -> str:
        if not memories:
            return "I couldn't find anything in your memories about that."
        titles = '; '.join(memory.title for memory in memories)
        return f'I found {len(memories)} related memories. {titles}.'

    async def cite(self, answer: str, memories: List[Memory]) -> Dict[str, List[str]]:
        citations = {}
        for sentence in re.split(r'(?<=[.!?])\s+', answer):
            ids = [memory.id for memory in memories if memory.title and memory.title in sentence]
            if ids:
                citations[sentence.strip()] = ids
        return citations
