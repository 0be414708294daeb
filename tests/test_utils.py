"""Tests for the JSON, timestamp, notification and health helpers."""

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

from recall.models.core import MemoryType, Preferences
from recall.services.notifications import Notifier, TelemetryDispatcher
from recall.utils.health_check import check_health, get_health_status
from recall.utils.json_utils import parse_json_response, to_jsonable
from recall.utils.timestamp_utils import from_iso, next_timestamp, to_iso, utc_now


class TestJson:

    def test_fenced_response(self):
        assert parse_json_response('```json\n[1, 2]\n```') == [1, 2]

    def test_invalid_returns_default(self):
        assert parse_json_response('nope', default={}) == {}

    def test_to_jsonable(self):
        when = datetime(2024, 5, 1, tzinfo=timezone.utc)
        assert to_jsonable({'type': MemoryType.IMAGE, 'at': when, 'prefs': Preferences()}) == {
            'type': 'image',
            'at': '2024-05-01T00:00:00+00:00',
            'prefs': {'theme': 'system', 'default_view': 'timeline', 'auto_sync': True, 'notifications': True},
        }


class TestTimestamps:

    def test_zulu_suffix(self):
        assert from_iso('2024-05-01T10:00:00Z') == datetime(2024, 5, 1, 10, tzinfo=timezone.utc)

    def test_naive_is_utc(self):
        assert to_iso(datetime(2024, 5, 1)) == '2024-05-01T00:00:00+00:00'

    def test_next_timestamp_never_goes_backwards(self):
        future = utc_now() + timedelta(hours=1)
        assert next_timestamp([future]) == future
        assert next_timestamp([]) <= utc_now()


class TestNotifier:

    def test_listeners_and_drain(self):
        notifier = Notifier()
        seen = []
        notifier.subscribe(seen.append)

        notifier.success('saved')
        notifier.error('failed')

        assert [n.level for n in seen] == ['success', 'error']
        assert [n.message for n in notifier.drain()] == ['saved', 'failed']
        assert notifier.history == []

    def test_dispatch_without_loop_is_dropped(self):
        async def track(*args):
            raise AssertionError('should not be awaited')

        collaborator = MagicMock()
        collaborator.track = MagicMock(side_effect=lambda *args: track(*args))

        TelemetryDispatcher(collaborator).emit(None, 'memory_viewed', {})

        collaborator.track.assert_called_once()

    def test_flush_waits_for_delivery(self):
        delivered = []

        async def track(session, name, attributes):
            await asyncio.sleep(0)
            delivered.append(name)

        collaborator = MagicMock()
        collaborator.track = MagicMock(side_effect=track)
        dispatcher = TelemetryDispatcher(collaborator)

        async def scenario():
            dispatcher.emit(None, 'memory_viewed', {'memory_id': 'm1'})
            assert delivered == []
            await dispatcher.flush()

        asyncio.run(scenario())
        assert delivered == ['memory_viewed']


class TestHealth:

    def test_local_backend_is_healthy(self, config):
        assert get_health_status(config) == {'local': {'healthy': True, 'service': 'In-process collaborators'}}
        assert check_health(config) is True
