"""
AWS-backed collaborators: OpenSearch memory storage with Bedrock semantic
search, Bedrock-generated insights and assistant answers.
"""

import asyncio
import re
from typing import Any, Callable, Dict, List, Optional, TypeVar

from ..models.core import AnalyticsSnapshot, Identity, Insight, Memory, Session
from ..utils.bedrock_embed import BedrockEmbed, BedrockEmbedError
from ..utils.bedrock_llm import BedrockLLM, BedrockLLMError
from ..utils.bedrock_rerank import BedrockRerank, BedrockRerankError
from ..utils.json_utils import parse_json_response
from ..utils.logging_config import get_logger
from ..utils.opensearch_client import OpenSearchClient, OpenSearchError
from ..utils.timestamp_utils import from_iso, to_iso, utc_now
from .collaborators import AnalyticsCollaborator, AnswerCollaborator, MemoryCollaborator
from .errors import RemoteError
from .insights import compute_usage, rule_based_insights

logger = get_logger(__name__)

T = TypeVar('T')

ADAPTER_ERRORS = (OpenSearchError, BedrockEmbedError, BedrockRerankError, BedrockLLMError)


async def _run(action: str, func: Callable[..., T], *args, **kwargs) -> T:
    """Run a blocking SDK call off the event loop, reporting adapter errors as RemoteError."""
    try:
        return await asyncio.to_thread(func, *args, **kwargs)
    except ADAPTER_ERRORS as e:
        logger.error(f'{action} failed: {e}')
        raise RemoteError(f'{action} failed: {e}')


def memory_text(memory: Memory) -> str:
    return '\n'.join(part for part in [memory.title, memory.content, ' '.join(memory.tags)] if part)


def memory_to_document(user_id: str, memory: Memory, embedding: List[float]) -> Dict[str, Any]:
    return {
        'id': memory.id,
        'user_id': user_id,
        'type': memory.type.value,
        'title': memory.title,
        'content': memory.content,
        'source': memory.source,
        'tags': list(memory.tags),
        'metadata': dict(memory.metadata),
        'embedding': embedding,
        'created_at': to_iso(memory.created_at),
        'updated_at': to_iso(memory.updated_at),
    }


def memory_from_document(doc: Dict[str, Any]) -> Memory:
    return Memory(id=doc['id'],
                  type=doc.get('type', 'note'),
                  title=doc.get('title', ''),
                  content=doc.get('content', ''),
                  source=doc.get('source', 'manual'),
                  tags=doc.get('tags') or [],
                  metadata=doc.get('metadata') or {},
                  created_at=from_iso(doc.get('created_at')),
                  updated_at=from_iso(doc.get('updated_at') or doc.get('created_at')))


class OpenSearchMemoryCollaborator(MemoryCollaborator):
    """Memories as OpenSearch documents filtered by identity id.

    Semantic search embeds the query, takes hybrid (vector + keyword)
    candidates and, when a reranker is configured, reorders them with it.
    """

    def __init__(self, opensearch: OpenSearchClient, embed: BedrockEmbed, rerank: Optional[BedrockRerank] = None):
        self.opensearch = opensearch
        self.embed = embed
        self.rerank = rerank

    async def list(self, session: Session) -> List[Memory]:
        hits = await _run('Listing memories', self.opensearch.list_documents, session.identity.id)
        return [memory_from_document(hit['document']) for hit in hits]

    async def _index(self, action: str, session: Session, memory: Memory) -> Memory:
        embedding = await _run(f'{action} (embedding)', self.embed.embed_document, memory_text(memory))
        document = memory_to_document(session.identity.id, memory, embedding)
        if not await _run(action, self.opensearch.index_document, memory.id, document):
            raise RemoteError(f'{action} was not acknowledged for memory {memory.id}')
        return memory

    async def create(self, session: Session, memory: Memory) -> Memory:
        return await self._index('Creating memory', session, memory)

    async def update(self, session: Session, memory: Memory) -> Memory:
        return await self._index('Updating memory', session, memory)

    async def delete(self, session: Session, memory_id: str) -> None:
        if not await _run('Deleting memory', self.opensearch.delete_document, memory_id):
            raise RemoteError(f'Memory {memory_id} was not deleted')

    async def keyword_search(self, session: Session, query: str) -> List[Memory]:
        hits = await _run('Keyword search', self.opensearch.keyword_search, query, session.identity.id)
        return [memory_from_document(hit['document']) for hit in hits]

    async def semantic_search(self, session: Session, query: str, top_k: int) -> List[Memory]:
        vector = await _run('Embedding query', self.embed.embed_query, query)
        hits = await _run('Semantic search', self.opensearch.hybrid_search, query, vector, session.identity.id, top_k * 2)
        candidates = [memory_from_document(hit['document']) for hit in hits]

        if self.rerank is None or len(candidates) < 2:
            return candidates[:top_k]

        try:
            order = await asyncio.to_thread(self.rerank.rerank, query, [memory_text(m) for m in candidates], top_k)
        except BedrockRerankError as e:
            logger.warning(f'Rerank failed, keeping hybrid order: {e}')
            return candidates[:top_k]
        return [candidates[i] for i in order if 0 <= i < len(candidates)]


INSIGHTS_SYSTEM_PROMPT = """You analyze a person's saved memories (notes, bookmarks, videos, images) and point out
patterns and connections they may not have noticed.

## Guidelines
1. Each insight must be supported by at least two of the listed memories
2. Prefer concrete observations over generic advice
3. Confidence is a number between 0 and 1
4. Return at most 5 insights

## Output format
```json
[
  {"title": "short title", "description": "one or two sentences", "confidence": 0.8, "memories": [0, 3]}
]
```
Return [] if there is nothing worth pointing out."""


class BedrockAnalyticsCollaborator(AnalyticsCollaborator):
    """Usage statistics from the memory index plus LLM-generated insights."""

    def __init__(self, memories: OpenSearchMemoryCollaborator, llm: BedrockLLM, max_memories: int = 100):
        self.memories = memories
        self.llm = llm
        self.max_memories = max_memories

    async def fetch(self, session: Session) -> Optional[AnalyticsSnapshot]:
        memories = await self.memories.list(session)
        if not memories:
            return None

        insights = await self._insights(memories[:self.max_memories])
        return AnalyticsSnapshot(usage=compute_usage(memories), insights=insights, generated_at=utc_now())

    async def _insights(self, memories: List[Memory]) -> List[Insight]:
        listing = '\n'.join(f'{i}: [{m.type.value}/{m.source}] {m.title} {" ".join("#" + t for t in m.tags)}'
                            for i, m in enumerate(memories))
        response = await _run('Generating insights',
                              self.llm.generate,
                              f'## Memories\n{listing}',
                              INSIGHTS_SYSTEM_PROMPT,
                              prefill='```json',
                              stop_sequences=['```'])

        data = parse_json_response(response)
        if not isinstance(data, list):
            logger.warning('Unparseable insight response, falling back to rule-based insights')
            return rule_based_insights(memories)

        insights = []
        for item in data:
            if not isinstance(item, dict) or not item.get('title'):
                continue
            related = [memories[int(i)].id for i in item.get('memories', [])
                       if str(i).isdigit() and 0 <= int(i) < len(memories)]
            try:
                confidence = float(item.get('confidence', 0.5))
            except (TypeError, ValueError):
                confidence = 0.5
            insights.append(
                Insight(title=str(item['title']),
                        description=str(item.get('description', '')),
                        confidence=confidence,
                        related_memories=related))

        logger.debug(f'Generated {len(insights)} insights from {len(memories)} memories')
        return insights


ANSWER_SYSTEM_PROMPT = """You are Recall, an assistant that answers questions using only the user's saved memories.
If the memories do not contain the answer, say so plainly. Keep answers short."""

CITATION_SYSTEM_PROMPT = """You trace an answer back to the memories it was built from.

For each numbered answer sentence, list the numbered memories that directly support it.
Omit sentences with no supporting memory.

## Output format
```json
{"0": [1, 3], "2": [0]}
```"""


def split_sentences(text: str) -> List[str]:
    """Split on sentence endings, including CJK punctuation."""
    return [s.strip() for s in re.split(r'[.!?。！？]+', text) if s.strip()]


class BedrockAnswerCollaborator(AnswerCollaborator):

    def __init__(self, llm: BedrockLLM):
        self.llm = llm

    async def answer(self, identity: Identity, question: str, memories: List[Memory]) -> str:
        context = '\n'.join(f'- {m.title}: {m.content[:500]}' for m in memories) or '(no related memories)'
        prompt = f'## Memories of {identity.name}\n{context}\n\n## Question\n{question}'
        return (await _run('Answering question', self.llm.generate, prompt, ANSWER_SYSTEM_PROMPT)).strip()

    async def cite(self, answer: str, memories: List[Memory]) -> Dict[str, List[str]]:
        sentences = split_sentences(answer)
        if not sentences or not memories:
            return {}

        sentences_text = '\n'.join(f'{i}: {s}' for i, s in enumerate(sentences))
        memories_text = '\n'.join(f'{i}: {m.title}' for i, m in enumerate(memories))
        response = await _run('Mapping citations',
                              self.llm.generate,
                              f'## Memories\n{memories_text}\n\n## Answer sentences\n{sentences_text}',
                              CITATION_SYSTEM_PROMPT,
                              prefill='```json',
                              stop_sequences=['```'])

        mapping = parse_json_response(response, default={})
        if not isinstance(mapping, dict):
            return {}

        citations = {}
        for sentence_idx, memory_indices in mapping.items():
            try:
                idx = int(sentence_idx)
                ids = [memories[int(i)].id for i in memory_indices if 0 <= int(i) < len(memories)]
            except (ValueError, TypeError):
                continue
            if ids and 0 <= idx < len(sentences):
                citations[sentences[idx]] = ids
        return citations
