"""Tests for the connector store."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from recall.services.errors import AuthenticationError, NotFoundError, RemoteError


@pytest.fixture
def loaded(app):
    async def scenario():
        await app.session.sign_in('a@b.com', 'abcdef')
        await app.connectors.load()

    asyncio.run(scenario())
    return app


class TestStats:

    def test_initial_catalog(self, loaded):
        stats = loaded.connectors.stats()
        assert (stats.total, stats.enabled, stats.needing_setup) == (10, 0, 10)

    def test_stats_follow_toggle(self, loaded):
        asyncio.run(loaded.connectors.toggle('notion'))
        assert loaded.connectors.stats().enabled == 1


class TestToggle:

    def test_unknown_id_leaves_collection_unchanged(self, loaded, collaborators):
        before = loaded.connectors.connectors
        collaborators.connectors.set_enabled = AsyncMock()

        with pytest.raises(NotFoundError):
            asyncio.run(loaded.connectors.toggle('myspace'))

        assert loaded.connectors.connectors == before
        collaborators.connectors.set_enabled.assert_not_called()

    def test_toggle_twice_restores(self, loaded):
        async def scenario():
            first = await loaded.connectors.toggle('slack')
            second = await loaded.connectors.toggle('slack')
            return first, second

        first, second = asyncio.run(scenario())
        assert first.enabled is True
        assert second.enabled is False

    def test_remote_failure_keeps_state(self, loaded, collaborators):
        collaborators.connectors.set_enabled = AsyncMock(side_effect=RuntimeError('503'))

        with pytest.raises(RemoteError):
            asyncio.run(loaded.connectors.toggle('gmail'))

        assert loaded.connectors.get('gmail').enabled is False


class TestConfigure:

    def test_confirmed_configuration_clears_needs_setup(self, loaded):
        connector = asyncio.run(loaded.connectors.configure('github', {'org': 'acme'}))

        assert connector.needs_setup is False
        assert connector.config == {'org': 'acme'}
        assert loaded.connectors.stats().needing_setup == 9

    def test_unconfirmed_configuration_is_remote_error(self, loaded, collaborators):
        collaborators.connectors.configure = AsyncMock(return_value=False)

        with pytest.raises(RemoteError):
            asyncio.run(loaded.connectors.configure('github', {'org': 'acme'}))

        connector = loaded.connectors.get('github')
        assert connector.needs_setup is True
        assert connector.config == {}

    def test_unknown_id(self, loaded):
        with pytest.raises(NotFoundError):
            asyncio.run(loaded.connectors.configure('nope', {}))


class TestRequiresIdentity:

    def test_signed_out_toggle_and_configure_make_no_remote_call(self, loaded, collaborators):
        asyncio.run(loaded.session.sign_out())
        collaborators.connectors.set_enabled = AsyncMock()
        collaborators.connectors.configure = AsyncMock(return_value=True)

        with pytest.raises(AuthenticationError):
            asyncio.run(loaded.connectors.toggle('gmail'))
        with pytest.raises(AuthenticationError):
            asyncio.run(loaded.connectors.configure('notion', {'workspace': 'w'}))

        collaborators.connectors.set_enabled.assert_not_called()
        collaborators.connectors.configure.assert_not_called()
        assert loaded.connectors.get('gmail').enabled is False
