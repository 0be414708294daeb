"""
REST backend collaborators: connectors, preferences and telemetry.

Calls are blocking ``requests`` calls run with ``asyncio.to_thread`` and
failures are reported as RemoteError.
"""

import asyncio
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from ..models.core import Connector, Preferences, Session
from ..utils.backend_client import BackendClient, BackendClientError
from ..utils.logging_config import get_logger
from .collaborators import ConnectorCollaborator, PreferenceCollaborator, TelemetryCollaborator
from .errors import AuthenticationError, RemoteError

logger = get_logger(__name__)


async def _call(client: BackendClient, method: str, path: str, session: Optional[Session], payload=None) -> Any:
    token = session.token if session else None
    try:
        return await asyncio.to_thread(client.request, method, path, token, payload)
    except BackendClientError as e:
        if e.status_code == 401:
            raise AuthenticationError(f'Session rejected by backend: {e}')
        raise RemoteError(str(e))


def connector_from_record(record: Dict[str, Any]) -> Connector:
    return Connector(id=record['id'],
                     name=record.get('name', record['id']),
                     enabled=bool(record.get('enabled', False)),
                     needs_setup=bool(record.get('needs_setup', record.get('needsSetup', True))),
                     config=dict(record.get('config') or {}))


class RestConnectorCollaborator(ConnectorCollaborator):

    def __init__(self, client: BackendClient):
        self.client = client

    async def list(self, session: Session) -> List[Connector]:
        records = await _call(self.client, 'GET', '/connectors', session) or []
        return [connector_from_record(record) for record in records]

    async def set_enabled(self, session: Session, connector_id: str, enabled: bool) -> None:
        await _call(self.client, 'POST', f'/connectors/{connector_id}/toggle', session, {'enabled': enabled})

    async def configure(self, session: Session, connector_id: str, settings: Dict[str, Any]) -> bool:
        result = await _call(self.client, 'POST', f'/connectors/{connector_id}/configure', session, {'settings': settings})
        return bool(result and result.get('configured'))


class RestPreferenceCollaborator(PreferenceCollaborator):

    def __init__(self, client: BackendClient):
        self.client = client

    async def save(self, session: Session, preferences: Preferences) -> None:
        await _call(self.client, 'POST', '/user/preferences', session, asdict(preferences))

    async def export(self, session: Session) -> Dict[str, Any]:
        return await _call(self.client, 'GET', '/user/export', session) or {}

    async def delete_account(self, session: Session) -> None:
        await _call(self.client, 'DELETE', '/user/delete', session)


class RestTelemetryCollaborator(TelemetryCollaborator):

    def __init__(self, client: BackendClient):
        self.client = client

    async def track(self, session: Optional[Session], name: str, attributes: Dict[str, Any]) -> None:
        await _call(self.client, 'POST', '/events', session, {'name': name, 'attributes': attributes})
