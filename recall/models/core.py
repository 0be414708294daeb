"""
Core data models for the Recall memory dashboard.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

THEMES = ('light', 'dark', 'system')
DEFAULT_VIEWS = ('timeline', 'grid', 'list')


@dataclass
class Preferences:
    """Per-identity display and sync preferences."""
    theme: str = 'system'
    default_view: str = 'timeline'
    auto_sync: bool = True
    notifications: bool = True


@dataclass
class Identity:
    """The authenticated user's profile and preferences."""
    id: str
    email: str
    name: str
    avatar: Optional[str] = None
    is_premium: bool = False
    preferences: Preferences = field(default_factory=Preferences)

    @property
    def initials(self) -> str:
        return ''.join(part[0] for part in self.name.split() if part).upper()


@dataclass
class Session:
    """An established identity plus the token used for backend calls."""
    identity: Identity
    token: str


class MemoryType(str, Enum):
    """Kinds of memory records. Only visual media produce an inline preview."""
    NOTE = 'note'
    BOOKMARK = 'bookmark'
    VIDEO = 'video'
    IMAGE = 'image'
    DOCUMENT = 'document'
    MESSAGE = 'message'

    def produces_preview(self) -> bool:
        return self in (MemoryType.VIDEO, MemoryType.IMAGE)


@dataclass
class MediaPreview:
    """Inline media preview for a video or image memory."""
    kind: MemoryType
    url: str
    poster: Optional[str] = None
    alt: Optional[str] = None


@dataclass
class MemoryDraft:
    """A memory before it has been persisted."""
    type: MemoryType
    title: str
    content: str
    source: str = 'manual'
    tags: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.type = MemoryType(self.type)
        self.tags = normalize_tags(self.tags)


@dataclass
class Memory:
    """A single imported or user-created content record."""
    id: str
    type: MemoryType
    title: str
    content: str
    source: str
    tags: List[str]
    metadata: Dict[str, Any]
    created_at: datetime
    updated_at: datetime

    def __post_init__(self):
        self.type = MemoryType(self.type)
        self.tags = normalize_tags(self.tags)

    def preview(self) -> Optional[MediaPreview]:
        """Build the inline preview, if this memory's type and metadata support one."""
        if not self.type.produces_preview():
            return None
        url = (self.metadata or {}).get('url')
        if not url:
            return None
        if self.type is MemoryType.VIDEO:
            return MediaPreview(kind=self.type, url=url, poster=self.metadata.get('thumbnail'))
        return MediaPreview(kind=self.type, url=url, alt=self.title)

    def matches(self, query: str) -> bool:
        """Case-insensitive keyword match over title, content and tags."""
        needle = query.strip().lower()
        if not needle:
            return True
        haystacks = [self.title.lower(), self.content.lower()] + [tag.lower() for tag in self.tags]
        return any(needle in text for text in haystacks)


@dataclass
class Connector:
    """An external service integration that can import memories."""
    id: str
    name: str
    enabled: bool = False
    needs_setup: bool = True
    config: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ConnectorStats:
    total: int
    enabled: int
    needing_setup: int


@dataclass
class Insight:
    """A derived observation about the memory collection."""
    title: str
    description: str
    confidence: float
    related_memories: List[str] = field(default_factory=list)

    def __post_init__(self):
        self.confidence = min(1.0, max(0.0, float(self.confidence)))


@dataclass
class UsageStats:
    total_memories: int = 0
    by_type: Dict[str, int] = field(default_factory=dict)
    by_source: Dict[str, int] = field(default_factory=dict)
    memories_this_week: int = 0
    weekly_growth: float = 0.0


@dataclass
class AnalyticsSnapshot:
    """Aggregate statistics and AI insights over one identity's memories."""
    usage: UsageStats
    insights: List[Insight]
    generated_at: datetime


def normalize_tags(tags: Optional[List[str]]) -> List[str]:
    """Strip tags and drop blanks and duplicates, keeping first-seen order."""
    seen = []
    for tag in tags or []:
        tag = str(tag).strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen
