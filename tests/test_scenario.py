"""End-to-end walk through the dashboard on the local backend."""

import asyncio
from unittest.mock import AsyncMock

from recall.models.core import MemoryType
from recall.models.views import LoginView, UpsellView


def test_signup_bookmark_and_insights_upsell(app, collaborators):
    collaborators.analytics.fetch = AsyncMock(wraps=collaborators.analytics.fetch)
    coordinator = app.coordinator

    async def scenario():
        assert isinstance(await coordinator.start(), LoginView)

        assert await coordinator.submit_signup('a@b.com', 'abcdef', 'A B')
        identity = app.session.identity
        assert identity.is_premium is False
        assert identity.name == 'A B'

        memory = await coordinator.bookmark('http://x/video.mp4', 'video')
        assert memory.type is MemoryType.VIDEO
        assert memory.source == 'manual'
        assert memory.metadata['url'] == 'http://x/video.mp4'
        assert app.memories.memories[-1] == memory
        assert memory.preview().url == 'http://x/video.mp4'

        view = await coordinator.enter_tab('insights')
        assert isinstance(view, UpsellView)

    asyncio.run(scenario())

    collaborators.analytics.fetch.assert_not_called()
    messages = [n.message for n in app.context.notifier.history]
    assert messages.count('Welcome back to Recall, A B!') == 1
    assert 'video bookmarked successfully!' in messages
