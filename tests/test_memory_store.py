"""Tests for the memory store."""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from recall.models.core import MemoryDraft, MemoryType
from recall.services.errors import AuthenticationError, NotFoundError, RemoteError, ValidationError
from recall.services.store import LoadStatus
from recall.utils.timestamp_utils import utc_now


def draft(title='Meeting notes', **kwargs):
    return MemoryDraft(type=kwargs.pop('type', MemoryType.NOTE), title=title, content=kwargs.pop('content', ''), **kwargs)


def signed_in(app):
    asyncio.run(app.session.sign_in('a@b.com', 'abcdef'))
    return app


class TestCreate:

    def test_ids_unique_and_timestamps_non_decreasing(self, app):
        signed_in(app)

        async def scenario():
            return [await app.memories.create(draft(f'note {i}')) for i in range(5)]

        created = asyncio.run(scenario())

        assert len({m.id for m in created}) == 5
        timestamps = [m.created_at for m in created]
        assert timestamps == sorted(timestamps)
        assert app.memories.memories == created

    def test_timestamp_not_before_existing_future_record(self, app, make_memory):
        signed_in(app)
        future = make_memory(title='from the future')
        future.created_at = utc_now() + timedelta(hours=1)
        app.memories._memories.append(future)

        memory = asyncio.run(app.memories.create(draft()))

        assert memory.created_at >= future.created_at
        assert memory.id != future.id

    def test_requires_identity(self, app, collaborators):
        collaborators.memories.create = AsyncMock()

        with pytest.raises(AuthenticationError):
            asyncio.run(app.memories.create(draft()))

        collaborators.memories.create.assert_not_called()

    def test_remote_failure_leaves_collection_unchanged(self, app, collaborators):
        signed_in(app)
        asyncio.run(app.memories.create(draft('kept')))
        before = app.memories.memories
        collaborators.memories.create = AsyncMock(side_effect=RuntimeError('write rejected'))

        with pytest.raises(RemoteError):
            asyncio.run(app.memories.create(draft('lost')))

        assert app.memories.memories == before

    def test_blank_title_rejected(self, app):
        signed_in(app)
        with pytest.raises(ValidationError):
            asyncio.run(app.memories.create(draft('   ')))

    def test_tags_deduplicated(self, app):
        signed_in(app)
        memory = asyncio.run(app.memories.create(draft(tags=['ai', ' ai ', '', 'research'])))
        assert memory.tags == ['ai', 'research']


class TestUpdateAndDelete:

    def test_update_unknown_id(self, app, collaborators):
        signed_in(app)
        collaborators.memories.update = AsyncMock()

        with pytest.raises(NotFoundError):
            asyncio.run(app.memories.update('missing', {'title': 'x'}))

        collaborators.memories.update.assert_not_called()

    def test_update_applies_patch(self, app):
        signed_in(app)

        async def scenario():
            memory = await app.memories.create(draft('old title'))
            return memory, await app.memories.update(memory.id, {'title': 'new title', 'tags': ['x']})

        original, updated = asyncio.run(scenario())

        assert updated.title == 'new title'
        assert updated.tags == ['x']
        assert updated.updated_at >= original.updated_at
        assert app.memories.get(original.id).title == 'new title'

    def test_update_rejects_unknown_fields(self, app):
        signed_in(app)
        memory = asyncio.run(app.memories.create(draft()))

        with pytest.raises(ValidationError):
            asyncio.run(app.memories.update(memory.id, {'id': 'other'}))

    def test_update_remote_failure_keeps_old_record(self, app, collaborators):
        signed_in(app)
        memory = asyncio.run(app.memories.create(draft('stable')))
        collaborators.memories.update = AsyncMock(side_effect=RemoteError('nope'))

        with pytest.raises(RemoteError):
            asyncio.run(app.memories.update(memory.id, {'title': 'changed'}))

        assert app.memories.get(memory.id).title == 'stable'

    def test_delete_unknown_id(self, app):
        signed_in(app)
        with pytest.raises(NotFoundError):
            asyncio.run(app.memories.delete('missing'))

    def test_delete_remote_failure_keeps_record(self, app, collaborators):
        signed_in(app)
        memory = asyncio.run(app.memories.create(draft()))
        collaborators.memories.delete = AsyncMock(side_effect=RuntimeError('boom'))

        with pytest.raises(RemoteError):
            asyncio.run(app.memories.delete(memory.id))

        assert [m.id for m in app.memories.memories] == [memory.id]

    def test_delete_removes_record(self, app):
        signed_in(app)

        async def scenario():
            memory = await app.memories.create(draft())
            await app.memories.delete(memory.id)

        asyncio.run(scenario())
        assert app.memories.memories == []


class TestSearch:

    def seed(self, app):
        async def scenario():
            await app.memories.create(draft('Startup ideas', content='marketplace for tools', tags=['Business']))
            await app.memories.create(draft('Paper on transformers', content='attention is all you need', tags=['AI']))
            await app.memories.create(draft('Grocery list', content='milk, eggs'))

        asyncio.run(scenario())

    def test_keyword_search_matches_tags_case_insensitively(self, app):
        signed_in(app)
        self.seed(app)

        results = asyncio.run(app.memories.search('business'))

        assert [m.title for m in results] == ['Startup ideas']
        assert app.memories.query == 'business'
        assert app.memories.visible == results

    def test_empty_query_clears_results(self, app):
        signed_in(app)
        self.seed(app)

        async def scenario():
            await app.memories.search('milk')
            return await app.memories.search('  ')

        results = asyncio.run(scenario())

        assert len(results) == 3
        assert app.memories.results is None

    def test_created_memory_joins_matching_results(self, app):
        signed_in(app)
        self.seed(app)

        async def scenario():
            await app.memories.search('list')
            await app.memories.create(draft('Reading list'))
            await app.memories.create(draft('Holiday plans'))

        asyncio.run(scenario())

        assert [m.title for m in app.memories.visible] == ['Grocery list', 'Reading list']
        assert len(app.memories.memories) == 5

    def test_ai_search_ranks_by_collaborator(self, app):
        signed_in(app)
        self.seed(app)

        results = asyncio.run(app.memories.ai_search('attention transformers paper'))

        assert results[0].title == 'Paper on transformers'

    def test_load_sets_status(self, app):
        signed_in(app)
        assert app.memories.status is LoadStatus.IDLE
        asyncio.run(app.memories.load())
        assert app.memories.status is LoadStatus.LOADED

    def test_load_failure_sets_error_status(self, app, collaborators):
        signed_in(app)
        collaborators.memories.list = AsyncMock(side_effect=RuntimeError('down'))

        with pytest.raises(RemoteError):
            asyncio.run(app.memories.load())

        assert app.memories.status is LoadStatus.ERROR
        assert 'down' in app.memories.error
