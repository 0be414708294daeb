"""
Memory store: the primary content source of the dashboard.
"""

import uuid
from dataclasses import replace
from typing import Any, Dict, List, Optional

from ..models.core import Memory, MemoryDraft, MemoryType
from ..utils.logging_config import get_logger
from ..utils.timestamp_utils import next_timestamp, utc_now
from .collaborators import MemoryCollaborator
from .errors import NotFoundError, ValidationError
from .session_store import SessionStore
from .store import Store

logger = get_logger(__name__)

PATCHABLE_FIELDS = ('type', 'title', 'content', 'tags', 'metadata')


class MemoryStore(Store):
    """Owns the memory collection plus the current search results.

    Mutations are applied locally only after the collaborator confirms them,
    so a RemoteError leaves the collection exactly as it was. Concurrent
    mutations are not serialized against each other.
    """

    def __init__(self, session: SessionStore, collaborator: MemoryCollaborator, search_top_k: int = 10):
        super().__init__()
        self.session = session
        self.collaborator = collaborator
        self.search_top_k = search_top_k
        self._memories: List[Memory] = []
        self.query = ''
        self.results: Optional[List[Memory]] = None

    @property
    def memories(self) -> List[Memory]:
        return list(self._memories)

    @property
    def visible(self) -> List[Memory]:
        """Search results when a search is active, otherwise the whole collection."""
        return list(self.results) if self.results is not None else self.memories

    def get(self, memory_id: str) -> Memory:
        for memory in self._memories:
            if memory.id == memory_id:
                return memory
        raise NotFoundError(f'Memory {memory_id} not found')

    async def load(self) -> List[Memory]:
        session = self.session.require_session()
        memories = await self._load('Loading memories', self.collaborator.list(session))
        self._memories = sorted(memories, key=lambda m: m.created_at)
        logger.debug(f'Loaded {len(self._memories)} memories for {session.identity.id}')
        return self.memories

    async def search(self, query: str) -> List[Memory]:
        """Keyword search over title, content and tags. An empty query clears the search."""
        session = self.session.require_session()
        query = (query or '').strip()
        if not query:
            self.clear_search()
            return self.memories

        results = await self._remote('Search', self.collaborator.keyword_search(session, query))
        self.query, self.results = query, results
        logger.debug(f'Keyword search "{query}" returned {len(results)} memories')
        return list(results)

    async def ai_search(self, query: str) -> List[Memory]:
        """Semantic search; ranking is left to the collaborator."""
        session = self.session.require_session()
        query = (query or '').strip()
        if not query:
            self.clear_search()
            return self.memories

        results = await self._remote('AI search', self.collaborator.semantic_search(session, query, self.search_top_k))
        self.query, self.results = query, results
        logger.debug(f'AI search "{query}" returned {len(results)} memories')
        return list(results)

    async def find_related(self, query: str, top_k: Optional[int] = None) -> List[Memory]:
        """Semantic search that leaves the visible search results untouched."""
        session = self.session.require_session()
        return await self._remote('Related search',
                                  self.collaborator.semantic_search(session, query, top_k or self.search_top_k))

    def clear_search(self) -> None:
        self.query = ''
        self.results = None

    async def create(self, draft: MemoryDraft) -> Memory:
        session = self.session.require_session()
        if not draft.title.strip():
            raise ValidationError('Memory title is required')

        existing_ids = {memory.id for memory in self._memories}
        memory_id = uuid.uuid4().hex
        while memory_id in existing_ids:
            memory_id = uuid.uuid4().hex
        created_at = next_timestamp(memory.created_at for memory in self._memories)

        memory = Memory(id=memory_id,
                        type=draft.type,
                        title=draft.title,
                        content=draft.content,
                        source=draft.source,
                        tags=list(draft.tags),
                        metadata=dict(draft.metadata),
                        created_at=created_at,
                        updated_at=created_at)

        persisted = await self._remote('Create memory', self.collaborator.create(session, memory))
        self._memories.append(persisted)
        if self.results is not None and persisted.matches(self.query):
            self.results.append(persisted)
        logger.info(f'Created {persisted.type.value} memory {persisted.id} from {persisted.source}')
        return persisted

    async def update(self, memory_id: str, patch: Dict[str, Any]) -> Memory:
        session = self.session.require_session()
        current = self.get(memory_id)

        unknown = set(patch) - set(PATCHABLE_FIELDS)
        if unknown:
            raise ValidationError(f'Cannot update fields: {", ".join(sorted(unknown))}')
        changes = dict(patch)
        if 'type' in changes:
            try:
                changes['type'] = MemoryType(changes['type'])
            except ValueError:
                raise ValidationError(f'Unknown memory type: {changes["type"]}')

        updated_at = max(utc_now(), current.updated_at)
        candidate = replace(current, updated_at=updated_at, **changes)

        persisted = await self._remote('Update memory', self.collaborator.update(session, candidate))
        self._replace(memory_id, persisted)
        logger.debug(f'Updated memory {memory_id}')
        return persisted

    async def delete(self, memory_id: str) -> None:
        session = self.session.require_session()
        self.get(memory_id)

        await self._remote('Delete memory', self.collaborator.delete(session, memory_id))
        self._memories = [memory for memory in self._memories if memory.id != memory_id]
        if self.results is not None:
            self.results = [memory for memory in self.results if memory.id != memory_id]
        logger.debug(f'Deleted memory {memory_id}')

    def clear(self) -> None:
        self._memories = []
        self.clear_search()
        self._reset_status()

    def _replace(self, memory_id: str, memory: Memory) -> None:
        self._memories = [memory if m.id == memory_id else m for m in self._memories]
        if self.results is not None:
            self.results = [memory if m.id == memory_id else m for m in self.results]
