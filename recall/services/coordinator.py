"""
View coordinator: navigation state, view composition and user-action routing.
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, TypeVar

from ..models.core import Memory, MemoryDraft, MemoryType
from ..models.views import (AnalyticsView, AssistantView, ChatTurn, ComingSoonView, ConnectorsView, HomeView,
                            InsightsView, LoadingView, LoginView, QuickStats, SearchView, SettingsView, UpsellView,
                            View)
from ..utils.logging_config import get_logger
from ..utils.timestamp_utils import to_iso
from .analytics_store import AnalyticsStore
from .assistant import AssistantService
from .connector_store import ConnectorStore
from .context import AppContext
from .errors import RecallError, ValidationError
from .memory_store import MemoryStore
from .session_store import SessionStore
from .settings import SettingsService

logger = get_logger(__name__)

T = TypeVar('T')

KNOWN_TABS = ('home', 'search', 'ai', 'connectors', 'analytics', 'insights', 'settings')
BOOKMARK_KINDS = {'video': MemoryType.VIDEO, 'image': MemoryType.IMAGE, 'article': MemoryType.BOOKMARK}


@dataclass(frozen=True)
class NavItem:
    id: str
    label: str
    premium: bool = False
    badge: Optional[str] = None


SIDEBAR: Tuple[Tuple[str, Tuple[NavItem, ...]], ...] = (
    ('Main', (NavItem('home', 'Timeline'),
              NavItem('search', 'Search'),
              NavItem('ai', 'AI Assistant', badge='Beta'),
              NavItem('insights', 'Insights', premium=True))),
    ('Library', (NavItem('recent', 'Recent'),
                 NavItem('favorites', 'Favorites'),
                 NavItem('archived', 'Archived'),
                 NavItem('tags', 'Tags'))),
    ('Tools', (NavItem('connectors', 'Connectors'),
               NavItem('analytics', 'Analytics', premium=True),
               NavItem('settings', 'Settings'),
               NavItem('help', 'Help'))),
)

MOBILE_NAV: Tuple[NavItem, ...] = (
    NavItem('home', 'Timeline'),
    NavItem('search', 'Search'),
    NavItem('ai', 'AI'),
    NavItem('connectors', 'Sources'),
    NavItem('analytics', 'Analytics'),
)


class ViewCoordinator:
    """The application shell.

    Owns the active tab, the sidebar state and the single selected-memory
    reference. Views are composed from the stores on every ``render`` call.
    Action methods never raise the RecallError taxonomy; failures become an
    error notification and leave state as it was.
    """

    def __init__(self,
                 context: AppContext,
                 session: SessionStore,
                 memories: MemoryStore,
                 connectors: ConnectorStore,
                 analytics: AnalyticsStore,
                 settings: SettingsService,
                 assistant: AssistantService):
        self.context = context
        self.notifier = context.notifier
        self.telemetry = context.telemetry
        self.session = session
        self.memories = memories
        self.connectors = connectors
        self.analytics = analytics
        self.settings = settings
        self.assistant = assistant

        self.active_tab = 'home'
        self.sidebar_collapsed = False
        self.selected_memory: Optional[Memory] = None

        self._renderers: Dict[str, Callable[[], View]] = {
            'home': self._render_home,
            'search': self._render_search,
            'ai': self._render_assistant,
            'connectors': self._render_connectors,
            'analytics': self._render_analytics,
            'insights': self._render_insights,
            'settings': self._render_settings,
        }

    # Navigation

    def select_tab(self, tab: str) -> None:
        self.active_tab = tab
        logger.debug(f'Active tab: {tab}')

    async def enter_tab(self, tab: str) -> View:
        """Select a tab and refresh the data it shows."""
        self.select_tab(tab)
        if self.session.is_authenticated:
            if tab == 'analytics' or (tab == 'insights' and self._is_premium()):
                await self._guard(self.analytics.refresh(), 'Failed to load analytics')
        return self.render()

    def toggle_sidebar(self) -> bool:
        self.sidebar_collapsed = not self.sidebar_collapsed
        return self.sidebar_collapsed

    def open_search(self) -> None:
        self.select_tab('search')

    def open_settings(self) -> None:
        self.select_tab('settings')

    def navigation(self, mobile: bool = False) -> List[Tuple[str, Tuple[NavItem, ...]]]:
        """Sidebar sections, or the single bottom bar on mobile. Labels are hidden while collapsed."""
        if mobile:
            return [('Mobile', MOBILE_NAV)]
        return list(SIDEBAR)

    # Rendering

    def render(self) -> View:
        if not self.session.is_authenticated:
            return LoginView()
        if self.session.loading or self.memories.loading:
            return LoadingView()
        renderer = self._renderers.get(self.active_tab)
        if renderer is None:
            return ComingSoonView(tab=self.active_tab)
        return renderer()

    def _render_home(self) -> HomeView:
        usage = self.analytics.usage_stats()
        stats = QuickStats(total_memories=len(self.memories.memories),
                           active_sources=self.connectors.stats().enabled,
                           insight_count=len(self.analytics.insights() or []),
                           weekly_growth=usage.weekly_growth if usage else 0.0)
        return HomeView(memories=self.memories.visible, stats=stats)

    def _render_search(self) -> SearchView:
        return SearchView(query=self.memories.query, results=self.memories.visible)

    def _render_assistant(self) -> AssistantView:
        return AssistantView(conversation=self.assistant.conversation)

    def _render_connectors(self) -> ConnectorsView:
        return ConnectorsView(connectors=self.connectors.connectors, stats=self.connectors.stats())

    def _render_analytics(self) -> AnalyticsView:
        return AnalyticsView(snapshot=self.analytics.snapshot,
                             loading=self.analytics.loading,
                             error=self.analytics.error,
                             memories=self.memories.memories)

    def _render_insights(self) -> View:
        if not self._is_premium():
            return UpsellView()
        return InsightsView(insights=self.analytics.insights())

    def _render_settings(self) -> SettingsView:
        identity = self.session.identity
        return SettingsView(identity=identity, preferences=identity.preferences if identity else None)

    def _is_premium(self) -> bool:
        identity = self.session.identity
        return bool(identity and identity.is_premium)

    # Lifecycle

    async def start(self) -> View:
        await self.session.restore()
        if self.session.is_authenticated:
            await self.load_all()
        return self.render()

    async def load_all(self) -> None:
        """Load the data stores independently; one failing does not stop the others.

        Analytics is fetched up front only for premium identities; everyone
        else fetches it on entering the analytics tab.
        """
        await self._guard(self.memories.load(), 'Failed to load memories')
        await self._guard(self.connectors.load(), 'Failed to load connectors')
        if self._is_premium():
            await self._guard(self.analytics.refresh(), 'Failed to load analytics')

    async def submit_login(self, email: str, password: str) -> bool:
        identity = await self._guard(self.session.sign_in(email, password), 'Failed to sign in')
        return await self._after_sign_in(identity)

    async def submit_signup(self, email: str, password: str, name: str, confirm_password: Optional[str] = None) -> bool:
        identity = await self._guard(self.session.sign_up(email, password, name, confirm_password), 'Failed to sign up')
        return await self._after_sign_in(identity)

    async def submit_google(self) -> bool:
        identity = await self._guard(self.session.sign_in_with_google(), 'Failed to sign in with Google')
        return await self._after_sign_in(identity)

    async def _after_sign_in(self, identity) -> bool:
        if identity is None:
            return False
        await self.load_all()
        return True

    async def sign_out(self) -> None:
        was_signed_in = self.session.is_authenticated
        await self.session.sign_out()
        self._reset()
        if was_signed_in:
            self.notifier.success('Signed out successfully')

    async def delete_account(self) -> bool:
        done = await self._guard(self.settings.delete_account(), 'Failed to delete account', success=True)
        if done is None:
            return False
        self._reset()
        self.notifier.success('Account deleted successfully')
        return True

    def _reset(self) -> None:
        self.active_tab = 'home'
        self.sidebar_collapsed = False
        self.selected_memory = None
        self.memories.clear()
        self.connectors.clear()
        self.analytics.clear()
        self.assistant.clear()

    # Memory actions

    def select_memory(self, memory: Memory) -> Memory:
        """Select a memory and emit one ``memory_viewed`` event without waiting on it."""
        self.selected_memory = memory
        self.telemetry.emit(self.session.session, 'memory_viewed', {
            'memory_id': memory.id,
            'memory_type': memory.type.value,
            'source': memory.source,
        })
        return memory

    async def bookmark(self, url: str, kind: str) -> Optional[Memory]:
        """Bookmark a video, image or article URL as a manual memory."""
        if kind not in BOOKMARK_KINDS or not (url or '').strip():
            self.notifier.error('Failed to bookmark content')
            return None

        url = url.strip()
        draft = MemoryDraft(type=BOOKMARK_KINDS[kind],
                            title=f'Bookmarked {kind}',
                            content=url,
                            source='manual',
                            tags=[],
                            metadata={
                                'url': url,
                                'bookmarked_at': to_iso(),
                                'media_type': kind,
                            })
        try:
            memory = await self.memories.create(draft)
        except RecallError as e:
            logger.error(f'Bookmark error: {e}')
            self.notifier.error('Failed to bookmark content')
            return None

        self.notifier.success(f'{kind} bookmarked successfully!')
        return memory

    async def run_search(self, query: str) -> List[Memory]:
        results = await self._guard(self.memories.search(query), 'Search failed')
        return results if results is not None else self.memories.visible

    async def run_ai_search(self, query: str) -> List[Memory]:
        results = await self._guard(self.memories.ai_search(query), 'AI search failed')
        return results if results is not None else self.memories.visible

    async def update_memory(self, memory_id: str, patch: Dict[str, Any]) -> Optional[Memory]:
        memory = await self._guard(self.memories.update(memory_id, patch), 'Failed to update memory')
        if memory is not None and self.selected_memory and self.selected_memory.id == memory_id:
            self.selected_memory = memory
        return memory

    async def delete_memory(self, memory_id: str) -> bool:
        done = await self._guard(self.memories.delete(memory_id), 'Failed to delete memory', success=True)
        if done is None:
            return False
        if self.selected_memory and self.selected_memory.id == memory_id:
            self.selected_memory = None
        return True

    async def ask(self, question: str) -> Optional[ChatTurn]:
        return await self._guard(self.assistant.ask(question), 'The assistant could not answer')

    # Connector and settings actions

    async def toggle_connector(self, connector_id: str):
        return await self._guard(self.connectors.toggle(connector_id), 'Failed to update connector')

    async def configure_connector(self, connector_id: str, settings: Optional[Dict[str, Any]] = None):
        connector = await self._guard(self.connectors.configure(connector_id, settings or {}),
                                      'Failed to configure connector')
        if connector is not None:
            self.notifier.success(f'{connector.name} configured')
        return connector

    async def update_preference(self, key: str, value: Any):
        preferences = await self._guard(self.settings.update_preference(key, value), 'Failed to update preferences')
        if preferences is not None:
            self.notifier.success('Preferences updated')
        return preferences

    async def export_data(self) -> Optional[Dict[str, Any]]:
        payload = await self._guard(self.settings.export_data(), 'Failed to export data')
        if payload is not None:
            self.notifier.success('Data exported successfully')
        return payload

    async def _guard(self, pending: Awaitable[T], failure: str, success: Any = None) -> Optional[T]:
        """Await a store operation, turning RecallError into an error notification.

        Returns the operation's result (or ``success`` when it returns None),
        or None when it failed.
        """
        try:
            result = await pending
        except ValidationError as e:
            self.notifier.error(str(e))
            return None
        except RecallError as e:
            logger.error(f'{failure}: {e}')
            self.notifier.error(failure)
            return None
        return success if result is None else result
