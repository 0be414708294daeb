"""
Application wiring: builds collaborators, stores and the view coordinator from configuration.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from .services.analytics_store import AnalyticsStore
from .services.assistant import AssistantService
from .services.connector_store import ConnectorStore
from .services.context import AppContext, Collaborators
from .services.coordinator import ViewCoordinator
from .services.local_backend import (LocalAnalyticsCollaborator, LocalAnswerCollaborator, LocalAuthCollaborator,
                                     LocalConnectorCollaborator, LocalMemoryCollaborator, LocalPreferenceCollaborator,
                                     LocalTelemetryCollaborator)
from .services.memory_store import MemoryStore
from .services.session_store import SessionStore
from .services.settings import SettingsService
from .utils.config import AppConfig
from .utils.config import config as default_config
from .utils.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class RecallApp:
    context: AppContext
    session: SessionStore
    memories: MemoryStore
    connectors: ConnectorStore
    analytics: AnalyticsStore
    settings: SettingsService
    assistant: AssistantService
    coordinator: ViewCoordinator


def build_local_collaborators(config: AppConfig, premium_emails: Iterable[str] = ()) -> Collaborators:
    memories = LocalMemoryCollaborator()
    connectors = LocalConnectorCollaborator()
    return Collaborators(auth=LocalAuthCollaborator(config.session, premium_emails),
                         memories=memories,
                         connectors=connectors,
                         analytics=LocalAnalyticsCollaborator(memories),
                         preferences=LocalPreferenceCollaborator(memories, connectors),
                         answers=LocalAnswerCollaborator(),
                         telemetry=LocalTelemetryCollaborator())


def build_aws_collaborators(config: AppConfig) -> Collaborators:
    """OpenSearch/Bedrock for memories, insights and answers; REST backend for the rest.

    Authentication stays on the local mock: no credential verification
    service is defined for this application.
    """
    from .services.aws_backend import BedrockAnalyticsCollaborator, BedrockAnswerCollaborator, OpenSearchMemoryCollaborator
    from .services.rest_backend import RestConnectorCollaborator, RestPreferenceCollaborator, RestTelemetryCollaborator
    from .utils.backend_client import BackendClient
    from .utils.bedrock_embed import BedrockEmbed
    from .utils.bedrock_llm import BedrockLLM
    from .utils.bedrock_rerank import BedrockRerank, BedrockRerankError
    from .utils.opensearch_client import OpenSearchClient, OpenSearchError

    opensearch = OpenSearchClient(config.opensearch)
    try:
        opensearch.create_index_if_not_exists()
    except OpenSearchError as e:
        logger.warning(f'Failed to create OpenSearch index: {e}')

    try:
        rerank = BedrockRerank(config.bedrock_rerank)
    except BedrockRerankError as e:
        logger.warning(f'Rerank disabled: {e}')
        rerank = None

    llm = BedrockLLM(config.bedrock_llm)
    memories = OpenSearchMemoryCollaborator(opensearch, BedrockEmbed(config.bedrock_embed), rerank)
    backend = BackendClient(config.backend)

    return Collaborators(auth=LocalAuthCollaborator(config.session),
                         memories=memories,
                         connectors=RestConnectorCollaborator(backend),
                         analytics=BedrockAnalyticsCollaborator(memories, llm),
                         preferences=RestPreferenceCollaborator(backend),
                         answers=BedrockAnswerCollaborator(llm),
                         telemetry=RestTelemetryCollaborator(backend))


def create_app(config: Optional[AppConfig] = None, collaborators: Optional[Collaborators] = None) -> RecallApp:
    """Assemble one application instance. The session starts with no identity."""
    config = config or default_config
    if collaborators is None:
        if config.backend.mode == 'aws':
            collaborators = build_aws_collaborators(config)
        elif config.backend.mode == 'local':
            collaborators = build_local_collaborators(config)
        else:
            raise ValueError(f'Unknown RECALL_BACKEND: {config.backend.mode}')

    context = AppContext(config=config, collaborators=collaborators)
    session = SessionStore(collaborators.auth, context.notifier, config.session)
    memories = MemoryStore(session, collaborators.memories, config.dashboard.search_top_k)
    connectors = ConnectorStore(session, collaborators.connectors)
    analytics = AnalyticsStore(session, collaborators.analytics)
    settings = SettingsService(session, collaborators.preferences, config.dashboard.export_dir)
    assistant = AssistantService(session, memories, collaborators.answers)
    coordinator = ViewCoordinator(context, session, memories, connectors, analytics, settings, assistant)

    logger.info(f'Created Recall app ({config.backend.mode} backend, {config.environment})')
    return RecallApp(context=context,
                     session=session,
                     memories=memories,
                     connectors=connectors,
                     analytics=analytics,
                     settings=settings,
                     assistant=assistant,
                     coordinator=coordinator)
