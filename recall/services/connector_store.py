"""
Connector store: the user's external data-source integrations.
"""

from dataclasses import replace
from typing import Any, Dict, List

from ..models.core import Connector, ConnectorStats
from ..utils.logging_config import get_logger
from .collaborators import ConnectorCollaborator
from .errors import NotFoundError, RemoteError
from .session_store import SessionStore
from .store import Store

logger = get_logger(__name__)


class ConnectorStore(Store):
    """Owns the connector list; state changes only after the collaborator accepts them."""

    def __init__(self, session: SessionStore, collaborator: ConnectorCollaborator):
        super().__init__()
        self.session = session
        self.collaborator = collaborator
        self._connectors: List[Connector] = []

    @property
    def connectors(self) -> List[Connector]:
        return list(self._connectors)

    def get(self, connector_id: str) -> Connector:
        for connector in self._connectors:
            if connector.id == connector_id:
                return connector
        raise NotFoundError(f'Connector {connector_id} not found')

    async def load(self) -> List[Connector]:
        session = self.session.require_session()
        self._connectors = list(await self._load('Loading connectors', self.collaborator.list(session)))
        logger.debug(f'Loaded {len(self._connectors)} connectors')
        return self.connectors

    async def toggle(self, connector_id: str) -> Connector:
        session = self.session.require_session()
        current = self.get(connector_id)
        enabled = not current.enabled

        await self._remote(f'Toggling {connector_id}', self.collaborator.set_enabled(session, connector_id, enabled))
        updated = replace(current, enabled=enabled)
        self._put(updated)
        logger.info(f'Connector {connector_id} {"enabled" if enabled else "disabled"}')
        return updated

    async def configure(self, connector_id: str, settings: Dict[str, Any]) -> Connector:
        """Persist settings; ``needs_setup`` clears only on collaborator confirmation."""
        session = self.session.require_session()
        current = self.get(connector_id)
        settings = dict(settings or {})

        confirmed = await self._remote(f'Configuring {connector_id}',
                                       self.collaborator.configure(session, connector_id, settings))
        if not confirmed:
            logger.warning(f'Configuration of {connector_id} was not confirmed')
            raise RemoteError(f'Configuration of {connector_id} was not confirmed')

        updated = replace(current, config={**current.config, **settings}, needs_setup=False)
        self._put(updated)
        logger.info(f'Connector {connector_id} configured')
        return updated

    def stats(self) -> ConnectorStats:
        return ConnectorStats(total=len(self._connectors),
                              enabled=sum(1 for c in self._connectors if c.enabled),
                              needing_setup=sum(1 for c in self._connectors if c.needs_setup))

    def clear(self) -> None:
        self._connectors = []
        self._reset_status()

    def _put(self, connector: Connector) -> None:
        self._connectors = [connector if c.id == connector.id else c for c in self._connectors]
