"""
Application context threaded through the stores in place of global state.
"""

from dataclasses import dataclass, field
from typing import Optional

from ..utils.config import AppConfig
from .collaborators import (AnalyticsCollaborator, AnswerCollaborator, AuthCollaborator, ConnectorCollaborator,
                            MemoryCollaborator, PreferenceCollaborator, TelemetryCollaborator)
from .notifications import Notifier, TelemetryDispatcher


@dataclass
class Collaborators:
    auth: AuthCollaborator
    memories: MemoryCollaborator
    connectors: ConnectorCollaborator
    analytics: AnalyticsCollaborator
    preferences: PreferenceCollaborator
    answers: AnswerCollaborator
    telemetry: Optional[TelemetryCollaborator] = None


@dataclass
class AppContext:
    """Configuration, collaborators and the user-facing channels for one application instance."""
    config: AppConfig
    collaborators: Collaborators
    notifier: Notifier = field(default_factory=Notifier)
    telemetry: Optional[TelemetryDispatcher] = None

    def __post_init__(self):
        if self.telemetry is None:
            self.telemetry = TelemetryDispatcher(self.collaborators.telemetry)
