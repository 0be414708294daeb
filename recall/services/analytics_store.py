"""
Analytics store: read-only statistics and AI insights.
"""

from typing import List, Optional

from ..models.core import AnalyticsSnapshot, Insight, UsageStats
from ..utils.logging_config import get_logger
from .collaborators import AnalyticsCollaborator
from .session_store import SessionStore
from .store import LoadStatus, Store

logger = get_logger(__name__)


class AnalyticsStore(Store):
    """Holds the last fetched analytics snapshot.

    ``computed`` separates "loaded, nothing computed yet" (snapshot is None)
    from a failed fetch (status is ERROR).
    """

    def __init__(self, session: SessionStore, collaborator: AnalyticsCollaborator):
        super().__init__()
        self.session = session
        self.collaborator = collaborator
        self.snapshot: Optional[AnalyticsSnapshot] = None

    @property
    def computed(self) -> bool:
        return self.status is LoadStatus.LOADED and self.snapshot is not None

    async def refresh(self) -> Optional[AnalyticsSnapshot]:
        session = self.session.require_session()
        self.snapshot = await self._load('Fetching analytics', self.collaborator.fetch(session))
        if self.snapshot is None:
            logger.debug(f'No analytics computed yet for {session.identity.id}')
        else:
            logger.debug(f'Fetched analytics with {len(self.snapshot.insights)} insights')
        return self.snapshot

    def insights(self) -> Optional[List[Insight]]:
        return list(self.snapshot.insights) if self.snapshot else None

    def usage_stats(self) -> Optional[UsageStats]:
        return self.snapshot.usage if self.snapshot else None

    def clear(self) -> None:
        self.snapshot = None
        self._reset_status()
