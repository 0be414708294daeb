"""
Shared load-state handling for the data stores.
"""

from enum import Enum
from typing import Awaitable, Optional, TypeVar

from ..utils.logging_config import get_logger
from .errors import RecallError, RemoteError

logger = get_logger(__name__)

T = TypeVar('T')


class LoadStatus(str, Enum):
    IDLE = 'idle'
    LOADING = 'loading'
    LOADED = 'loaded'
    ERROR = 'error'


class Store:
    """Base for stores that load from a collaborator and expose their load status."""

    def __init__(self):
        self.status = LoadStatus.IDLE
        self.error: Optional[str] = None

    @property
    def loading(self) -> bool:
        return self.status is LoadStatus.LOADING

    def _reset_status(self) -> None:
        self.status = LoadStatus.IDLE
        self.error = None

    async def _remote(self, action: str, pending: Awaitable[T]) -> T:
        """Await a collaborator call, translating unexpected failures into RemoteError."""
        try:
            return await pending
        except RecallError:
            raise
        except Exception as e:
            logger.error(f'{action} failed: {e}')
            raise RemoteError(f'{action} failed: {e}')

    async def _load(self, action: str, pending: Awaitable[T]) -> T:
        """Like ``_remote`` but tracks the loading/loaded/error status around the call."""
        self.status = LoadStatus.LOADING
        self.error = None
        try:
            result = await self._remote(action, pending)
        except RecallError as e:
            self.status = LoadStatus.ERROR
            self.error = str(e)
            raise
        self.status = LoadStatus.LOADED
        return result
