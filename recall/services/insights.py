"""
Usage statistics and rule-based insights computed from a memory collection.
"""

from collections import Counter
from datetime import datetime
from typing import List, Optional

from ..models.core import Insight, Memory, UsageStats
from ..utils.timestamp_utils import utc_now, week_start


def weekly_growth(this_week: int, last_week: int) -> float:
    """Week-over-week growth in percent, rounded to one decimal."""
    if last_week == 0:
        return 100.0 if this_week else 0.0
    return round((this_week - last_week) / last_week * 100.0, 1)


def compute_usage(memories: List[Memory], now: Optional[datetime] = None) -> UsageStats:
    now = now or utc_now()
    this_week_start = week_start(now)
    last_week_start = week_start(now, weeks_back=1)

    this_week = sum(1 for m in memories if this_week_start <= m.created_at <= now)
    last_week = sum(1 for m in memories if last_week_start <= m.created_at < this_week_start)

    return UsageStats(total_memories=len(memories),
                      by_type=dict(Counter(m.type.value for m in memories)),
                      by_source=dict(Counter(m.source for m in memories)),
                      memories_this_week=this_week,
                      weekly_growth=weekly_growth(this_week, last_week))


def rule_based_insights(memories: List[Memory], limit: int = 3) -> List[Insight]:
    """Cheap insights from tag and source frequencies, strongest first."""
    if not memories:
        return []

    insights = []
    total = len(memories)

    tag_counts = Counter(tag.lower() for m in memories for tag in m.tags)
    for tag, count in tag_counts.most_common(limit):
        if count < 2:
            break
        related = [m.id for m in memories if tag in (t.lower() for t in m.tags)]
        insights.append(
            Insight(title=f'Recurring theme: {tag}',
                    description=f'{count} of your memories are tagged "{tag}".',
                    confidence=count / total,
                    related_memories=related))

    source, count = Counter(m.source for m in memories).most_common(1)[0]
    insights.append(
        Insight(title=f'Most of your memories come from {source}',
                description=f'{count} of {total} memories were imported from {source}.',
                confidence=count / total,
                related_memories=[m.id for m in memories if m.source == source]))

    insights.sort(key=lambda insight: insight.confidence, reverse=True)
    return insights[:limit]
