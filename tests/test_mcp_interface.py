"""Tests for the view description returned by the MCP tools."""

import asyncio

from recall.mcp_interface import describe_view


def test_signed_out_description(app):
    described = describe_view(app)

    assert described['view']['name'] == 'login'
    assert described['user'] is None
    assert described['navigation'][0]['section'] == 'Main'


def test_signed_in_description_drains_notifications(app):
    async def scenario():
        await app.coordinator.start()
        await app.coordinator.submit_signup('ada@example.com', 'abcdef', 'Ada Lovelace')

    asyncio.run(scenario())
    described = describe_view(app, mobile=True)

    assert described['user'] == {'name': 'Ada Lovelace', 'initials': 'AL', 'premium': False}
    assert [item['id'] for item in described['navigation'][0]['items']][:2] == ['home', 'search']
    assert described['notifications'][0]['message'] == 'Welcome back to Recall, Ada Lovelace!'
    assert describe_view(app)['notifications'] == []


def test_search_description_flags_no_results(app):
    async def scenario():
        await app.coordinator.submit_login('a@b.com', 'abcdef')
        app.coordinator.open_search()
        await app.coordinator.run_search('missing')

    asyncio.run(scenario())

    assert describe_view(app)['no_results'] is True
