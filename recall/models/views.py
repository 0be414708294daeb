"""
View records produced by the view coordinator, one per dashboard screen.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .core import AnalyticsSnapshot, Connector, ConnectorStats, Identity, Insight, Memory, Preferences

HOME_SUGGESTIONS = ('AI research', 'startup ideas', 'meeting notes', 'bookmarked videos')
SEARCH_SUGGESTIONS = ('AI research', 'startup ideas', 'meeting notes', 'videos', 'images')


@dataclass
class View:
    name: str = 'view'


@dataclass
class LoginView(View):
    name: str = 'login'


@dataclass
class LoadingView(View):
    name: str = 'loading'


@dataclass
class QuickStats:
    total_memories: int
    active_sources: int
    insight_count: int
    weekly_growth: float


@dataclass
class HomeView(View):
    memories: List[Memory] = field(default_factory=list)
    stats: Optional[QuickStats] = None
    suggestions: Tuple[str, ...] = HOME_SUGGESTIONS
    bookmark_kinds: Tuple[str, ...] = ('video', 'image', 'article')
    name: str = 'home'


@dataclass
class SearchView(View):
    query: str = ''
    results: List[Memory] = field(default_factory=list)
    suggestions: Tuple[str, ...] = SEARCH_SUGGESTIONS
    name: str = 'search'

    @property
    def is_empty(self) -> bool:
        return not self.results


@dataclass
class ChatTurn:
    question: str
    answer: str
    memories: List[Memory] = field(default_factory=list)
    citations: Dict[str, List[str]] = field(default_factory=dict)


@dataclass
class AssistantView(View):
    conversation: List[ChatTurn] = field(default_factory=list)
    badge: str = 'Beta'
    name: str = 'ai'


@dataclass
class ConnectorsView(View):
    connectors: List[Connector] = field(default_factory=list)
    stats: Optional[ConnectorStats] = None
    name: str = 'connectors'


@dataclass
class AnalyticsView(View):
    snapshot: Optional[AnalyticsSnapshot] = None
    loading: bool = False
    error: Optional[str] = None
    memories: List[Memory] = field(default_factory=list)
    name: str = 'analytics'


@dataclass
class InsightsView(View):
    """Premium insights. ``insights`` is None while they are still being computed."""
    insights: Optional[List[Insight]] = None
    name: str = 'insights'

    @property
    def analyzing(self) -> bool:
        return self.insights is None


@dataclass
class UpsellView(View):
    feature: str = 'insights'
    message: str = 'Upgrade to unlock AI insights and advanced analytics'
    name: str = 'upsell'


@dataclass
class SettingsView(View):
    identity: Optional[Identity] = None
    preferences: Optional[Preferences] = None
    name: str = 'settings'


@dataclass
class ComingSoonView(View):
    tab: str = ''
    message: str = 'This feature is under development.'
    name: str = 'coming_soon'
