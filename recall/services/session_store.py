"""
Session store: owns the authenticated identity for one application instance.
"""

from dataclasses import replace
from typing import Optional

from ..models.core import Identity, Preferences, Session
from ..utils.config import SessionConfig
from ..utils.logging_config import get_logger
from .collaborators import AuthCollaborator
from .errors import AuthenticationError, RecallError, ValidationError
from .notifications import Notifier

logger = get_logger(__name__)


class SessionStore:
    """Holds the current identity (or none) and the sign-in/sign-up/sign-out operations.

    Every other store asks this one for the active session before a remote
    call, so no remote work happens without an established identity.
    """

    def __init__(self, auth: AuthCollaborator, notifier: Notifier, config: SessionConfig):
        self.auth = auth
        self.notifier = notifier
        self.config = config
        self._session: Optional[Session] = None
        self.loading = True

    @property
    def identity(self) -> Optional[Identity]:
        return self._session.identity if self._session else None

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    def require_session(self) -> Session:
        """Return the active session or raise AuthenticationError."""
        if self._session is None:
            raise AuthenticationError('Not signed in')
        return self._session

    def require_identity(self) -> Identity:
        return self.require_session().identity

    async def restore(self) -> Optional[Identity]:
        """Startup session check. Clears ``loading`` whatever the outcome."""
        try:
            session = await self.auth.restore()
        except Exception as e:
            logger.warning(f'Session restore failed: {e}')
            session = None
        finally:
            self.loading = False

        if session is not None:
            self._start(session)
        return self.identity

    async def sign_in(self, email: str, password: str) -> Identity:
        if not email or not email.strip():
            raise ValidationError('Email is required')
        if not password:
            raise ValidationError('Password is required')

        session = await self._authenticate('Sign in', self.auth.sign_in(email.strip(), password))
        return self._start(session)

    async def sign_up(self, email: str, password: str, name: str, confirm_password: Optional[str] = None) -> Identity:
        """Create an account. Local validation runs first and never reaches the collaborator."""
        if not email or not email.strip():
            raise ValidationError('Email is required')
        if not name or not name.strip():
            raise ValidationError('Name is required')
        if confirm_password is not None and password != confirm_password:
            raise ValidationError('Passwords do not match')
        if len(password or '') < self.config.min_password_length:
            raise ValidationError(f'Password must be at least {self.config.min_password_length} characters')

        session = await self._authenticate('Sign up', self.auth.sign_up(email.strip(), password, name.strip()))
        return self._start(session)

    async def sign_in_with_google(self) -> Identity:
        session = await self._authenticate('Google sign in', self.auth.sign_in_with_provider('google'))
        return self._start(session)

    async def sign_out(self) -> None:
        """End the session. Local state resets even if the collaborator call fails."""
        session, self._session = self._session, None
        if session is None:
            return
        try:
            await self.auth.sign_out(session)
        except Exception as e:
            logger.warning(f'Remote sign out failed for {session.identity.id}: {e}')
        logger.info(f'Signed out {session.identity.email}')

    def apply_preferences(self, preferences: Preferences) -> Identity:
        session = self.require_session()
        identity = replace(session.identity, preferences=preferences)
        self._session = replace(session, identity=identity)
        return identity

    async def _authenticate(self, action: str, pending) -> Session:
        try:
            session = await pending
        except RecallError:
            raise
        except Exception as e:
            logger.error(f'{action} failed: {e}')
            raise AuthenticationError(f'{action} failed: {e}')
        if session is None:
            raise AuthenticationError(f'{action} failed: no identity returned')
        return session

    def _start(self, session: Session) -> Identity:
        self._session = session
        logger.info(f'Session started for {session.identity.email}')
        self.notifier.success(f'Welcome back to Recall, {session.identity.name}!')
        return session.identity
