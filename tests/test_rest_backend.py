"""Tests for the REST collaborators with a mocked requests session."""

import asyncio
from unittest.mock import MagicMock

import pytest
import requests

from recall.models.core import Identity, Preferences, Session
from recall.services.errors import AuthenticationError, RemoteError
from recall.services.rest_backend import (RestConnectorCollaborator, RestPreferenceCollaborator,
                                          RestTelemetryCollaborator, connector_from_record)
from recall.utils.backend_client import BackendClient, BackendClientError
from recall.utils.config import BackendConfig


def response(status=200, body=None):
    mock = MagicMock()
    mock.ok = 200 <= status < 300
    mock.status_code = status
    mock.content = b'x' if body is not None else b''
    mock.json.return_value = body
    return mock


@pytest.fixture
def http():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def client(http):
    return BackendClient(BackendConfig(mode='rest', api_url='https://api.example.com/v1/', timeout=5.0), http=http)


@pytest.fixture
def session():
    return Session(identity=Identity(id='u1', email='a@b.com', name='A B'), token='tok')


class TestBackendClient:

    def test_bearer_token_and_url(self, client, http):
        http.request.return_value = response(body={'ok': True})

        assert client.request('GET', '/connectors', token='tok') == {'ok': True}

        method, url = http.request.call_args.args
        kwargs = http.request.call_args.kwargs
        assert (method, url) == ('GET', 'https://api.example.com/v1/connectors')
        assert kwargs['headers']['Authorization'] == 'Bearer tok'
        assert kwargs['timeout'] == 5.0

    def test_empty_body_is_none(self, client, http):
        http.request.return_value = response(204)
        assert client.request('DELETE', '/user/delete') is None

    def test_status_error_keeps_code(self, client, http):
        http.request.return_value = response(503)

        with pytest.raises(BackendClientError) as exc:
            client.request('GET', '/connectors')
        assert exc.value.status_code == 503

    def test_transport_error(self, client, http):
        http.request.side_effect = requests.ConnectionError('refused')

        with pytest.raises(BackendClientError) as exc:
            client.request('GET', '/health')
        assert exc.value.status_code is None
        assert client.health_check() is False


class TestRestCollaborators:

    def test_unauthorized_is_authentication_error(self, client, http, session):
        http.request.return_value = response(401)

        with pytest.raises(AuthenticationError):
            asyncio.run(RestConnectorCollaborator(client).list(session))

    def test_other_failures_are_remote_errors(self, client, http, session):
        http.request.return_value = response(500)

        with pytest.raises(RemoteError):
            asyncio.run(RestPreferenceCollaborator(client).save(session, Preferences()))

    def test_list_maps_records(self, client, http, session):
        http.request.return_value = response(body=[{'id': 'gmail', 'name': 'Gmail', 'enabled': True, 'needsSetup': False}])

        connectors = asyncio.run(RestConnectorCollaborator(client).list(session))

        assert connectors[0].id == 'gmail'
        assert connectors[0].enabled is True
        assert connectors[0].needs_setup is False

    @pytest.mark.parametrize('body, expected', [
        ({'configured': True}, True),
        ({'configured': False}, False),
        (None, False),
    ])
    def test_configure_confirmation(self, client, http, session, body, expected):
        http.request.return_value = response(body=body)

        confirmed = asyncio.run(RestConnectorCollaborator(client).configure(session, 'notion', {'workspace': 'w'}))

        assert confirmed is expected
        assert http.request.call_args.kwargs['json'] == {'settings': {'workspace': 'w'}}

    def test_preferences_payload(self, client, http, session):
        http.request.return_value = response(204)

        asyncio.run(RestPreferenceCollaborator(client).save(session, Preferences(theme='dark')))

        method, url = http.request.call_args.args
        assert method == 'POST'
        assert url.endswith('/user/preferences')
        assert http.request.call_args.kwargs['json']['theme'] == 'dark'

    def test_telemetry_without_session_sends_no_token(self, client, http):
        http.request.return_value = response(204)

        asyncio.run(RestTelemetryCollaborator(client).track(None, 'memory_viewed', {'memory_id': 'm1'}))

        headers = http.request.call_args.kwargs['headers']
        assert 'Authorization' not in headers
        assert http.request.call_args.kwargs['json'] == {'name': 'memory_viewed', 'attributes': {'memory_id': 'm1'}}

    def test_connector_record_defaults(self):
        connector = connector_from_record({'id': 'pocket'})
        assert connector.name == 'pocket'
        assert connector.needs_setup is True
        assert connector.config == {}
