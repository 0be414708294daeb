"""
Assistant service: chat with your memories.
"""

from typing import List

from ..models.views import ChatTurn
from ..utils.logging_config import get_logger
from .collaborators import AnswerCollaborator
from .memory_store import MemoryStore
from .session_store import SessionStore
from .store import Store

logger = get_logger(__name__)


class AssistantService(Store):
    """Answers questions from the memories most related to them and keeps the conversation."""

    def __init__(self, session: SessionStore, memories: MemoryStore, collaborator: AnswerCollaborator, top_k: int = 5):
        super().__init__()
        self.session = session
        self.memories = memories
        self.collaborator = collaborator
        self.top_k = top_k
        self._conversation: List[ChatTurn] = []

    @property
    def conversation(self) -> List[ChatTurn]:
        return list(self._conversation)

    async def ask(self, question: str) -> ChatTurn:
        identity = self.session.require_identity()
        question = (question or '').strip()
        if not question:
            return ChatTurn(question='', answer='')

        related = await self.memories.find_related(question, self.top_k)
        answer = await self._remote('Answering question', self.collaborator.answer(identity, question, related))

        # Citations are optional
        try:
            citations = await self.collaborator.cite(answer, related)
        except Exception as e:
            logger.warning(f'Citation mapping failed: {e}')
            citations = {}

        turn = ChatTurn(question=question, answer=answer, memories=related, citations=citations)
        self._conversation.append(turn)
        logger.debug(f'Answered question using {len(related)} memories')
        return turn

    def clear(self) -> None:
        self._conversation = []
        self._reset_status()
