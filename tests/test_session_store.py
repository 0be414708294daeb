"""Tests for the session store."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from recall.services.errors import AuthenticationError, ValidationError


class TestSignUpValidation:

    def test_mismatched_confirmation_never_calls_collaborator(self, app, collaborators):
        collaborators.auth.sign_up = AsyncMock()

        with pytest.raises(ValidationError):
            asyncio.run(app.session.sign_up('a@b.com', 'abcdef', 'A B', confirm_password='abcdeg'))

        collaborators.auth.sign_up.assert_not_called()
        assert app.session.identity is None

    def test_short_password_never_calls_collaborator(self, app, collaborators):
        collaborators.auth.sign_up = AsyncMock()

        with pytest.raises(ValidationError, match='at least 6'):
            asyncio.run(app.session.sign_up('a@b.com', 'abc', 'A B'))

        collaborators.auth.sign_up.assert_not_called()

    def test_missing_name_is_rejected(self, app):
        with pytest.raises(ValidationError):
            asyncio.run(app.session.sign_up('a@b.com', 'abcdef', '  '))

    def test_valid_signup_establishes_identity(self, app):
        identity = asyncio.run(app.session.sign_up('a@b.com', 'abcdef', 'A B', confirm_password='abcdef'))

        assert identity.name == 'A B'
        assert identity.email == 'a@b.com'
        assert identity.is_premium is False
        assert identity.preferences.theme == 'system'
        assert app.session.is_authenticated


class TestSignIn:

    def test_welcome_notification_fires_once(self, app):
        asyncio.run(app.session.sign_in('someone@b.com', 'whatever'))

        welcomes = [n for n in app.context.notifier.history if 'Welcome back' in n.message]
        assert len(welcomes) == 1
        assert welcomes[0].message == 'Welcome back to Recall, someone!'

    def test_collaborator_failure_is_authentication_error(self, app, collaborators):
        collaborators.auth.sign_in = AsyncMock(side_effect=ConnectionError('offline'))

        with pytest.raises(AuthenticationError):
            asyncio.run(app.session.sign_in('a@b.com', 'abcdef'))

        assert app.session.identity is None
        assert app.context.notifier.history == []

    def test_google_sign_in_uses_configured_identity(self, app):
        identity = asyncio.run(app.session.sign_in_with_google())

        assert identity.email == 'googleuser@example.com'
        assert identity.name == 'Google User'

    def test_premium_flag_comes_from_collaborator(self, app):
        identity = asyncio.run(app.session.sign_in('pro@example.com', 'secret'))
        assert identity.is_premium is True


class TestSessionLifecycle:

    def test_require_identity_without_session(self, app):
        with pytest.raises(AuthenticationError):
            app.session.require_identity()

    def test_sign_out_resets_to_initial(self, app):
        async def scenario():
            await app.session.sign_in('a@b.com', 'abcdef')
            await app.session.sign_out()

        asyncio.run(scenario())

        assert app.session.identity is None
        with pytest.raises(AuthenticationError):
            app.session.require_session()

    def test_restore_clears_loading(self, app):
        assert app.session.loading is True
        assert asyncio.run(app.session.restore()) is None
        assert app.session.loading is False
