"""
Settings service: preferences, data export and account deletion.
"""

import asyncio
import json
import os
from dataclasses import fields, replace
from typing import Any, Dict, Optional

from ..models.core import DEFAULT_VIEWS, THEMES, Preferences
from ..utils.json_utils import to_jsonable
from ..utils.logging_config import get_logger
from ..utils.timestamp_utils import utc_now
from .collaborators import PreferenceCollaborator
from .errors import RemoteError, ValidationError
from .session_store import SessionStore
from .store import Store

logger = get_logger(__name__)

PREFERENCE_CHOICES = {
    'theme': THEMES,
    'default_view': DEFAULT_VIEWS,
}


def validate_preference(key: str, value: Any) -> Any:
    """Check one preference change locally. Returns the value to store."""
    if key not in {f.name for f in fields(Preferences)}:
        raise ValidationError(f'Unknown preference: {key}')
    if key in PREFERENCE_CHOICES:
        if value not in PREFERENCE_CHOICES[key]:
            raise ValidationError(f'Invalid {key}: {value!r}')
        return value
    if not isinstance(value, bool):
        raise ValidationError(f'{key} must be true or false')
    return value


def write_export(path: str, payload: Dict[str, Any]) -> None:
    os.makedirs(os.path.dirname(path) or '.', exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(to_jsonable(payload), f, indent=2)


class SettingsService(Store):

    def __init__(self, session: SessionStore, collaborator: PreferenceCollaborator, export_dir: str = '.'):
        super().__init__()
        self.session = session
        self.collaborator = collaborator
        self.export_dir = export_dir

    async def update_preference(self, key: str, value: Any) -> Preferences:
        """Save the full preference object with one key changed.

        The identity's preferences are replaced only after the save succeeds.
        """
        session = self.session.require_session()
        value = validate_preference(key, value)
        preferences = replace(session.identity.preferences, **{key: value})

        await self._remote('Updating preferences', self.collaborator.save(session, preferences))
        self.session.apply_preferences(preferences)
        logger.info(f'Preference {key} updated for {session.identity.id}')
        return preferences

    async def export_data(self, write: bool = True) -> Dict[str, Any]:
        """Fetch the account export; optionally write it to ``recall-export-YYYY-MM-DD.json``."""
        session = self.session.require_session()
        payload = await self._remote('Exporting data', self.collaborator.export(session))

        if write:
            path = self.export_path()
            try:
                await asyncio.to_thread(write_export, path, payload)
            except OSError as e:
                logger.error(f'Error writing export to {path}: {e}')
                raise RemoteError(f'Writing export failed: {e}')
            logger.info(f'Exported data for {session.identity.id} to {path}')
        return payload

    def export_path(self, day: Optional[str] = None) -> str:
        day = day or utc_now().date().isoformat()
        return os.path.join(self.export_dir, f'recall-export-{day}.json')

    async def delete_account(self) -> None:
        session = self.session.require_session()
        await self._remote('Deleting account', self.collaborator.delete_account(session))
        logger.info(f'Account {session.identity.id} deleted')
        await self.session.sign_out()
