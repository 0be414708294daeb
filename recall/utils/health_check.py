"""
Health check utilities for the AWS/REST backend.
"""

from typing import Any, Callable, Dict, Optional

from .backend_client import BackendClient
from .bedrock_embed import BedrockEmbed
from .bedrock_llm import BedrockLLM
from .bedrock_rerank import BedrockRerank
from .config import AppConfig
from .logging_config import get_logger
from .opensearch_client import OpenSearchClient

logger = get_logger(__name__)


def _probe(name: str, service: str, detail: Dict[str, Any], build: Callable[[], Any]) -> Dict[str, Any]:
    try:
        healthy = build().health_check()
        return {'healthy': healthy, 'service': service, **detail}
    except Exception as e:
        logger.error(f'{name} health probe failed: {e}')
        return {'healthy': False, 'service': service, 'error': str(e)}


def get_health_status(config: Optional[AppConfig] = None) -> Dict[str, Any]:
    """Health of each collaborator the configured backend depends on.

    The local backend runs in-process and is always reported healthy.
    """
    if config is None:
        from .config import config as default_config
        config = default_config

    if config.backend.mode != 'aws':
        return {'local': {'healthy': True, 'service': 'In-process collaborators'}}

    return {
        'bedrock_llm': _probe('bedrock_llm', 'Amazon Bedrock LLM', {'model': config.bedrock_llm.model_id},
                              lambda: BedrockLLM(config.bedrock_llm)),
        'bedrock_embed': _probe('bedrock_embed', 'Amazon Bedrock Embed', {'model': config.bedrock_embed.model_id},
                                lambda: BedrockEmbed(config.bedrock_embed)),
        'bedrock_rerank': _probe('bedrock_rerank', 'Amazon Bedrock Rerank', {'model': config.bedrock_rerank.model_id},
                                 lambda: BedrockRerank(config.bedrock_rerank)),
        'opensearch': _probe('opensearch', 'Amazon OpenSearch', {'endpoint': config.opensearch.endpoint},
                             lambda: OpenSearchClient(config.opensearch)),
        'backend': _probe('backend', 'Recall REST backend', {'endpoint': config.backend.api_url},
                          lambda: BackendClient(config.backend)),
    }


def check_health(config: Optional[AppConfig] = None) -> bool:
    """True when every component is healthy."""
    health_status = get_health_status(config)
    all_healthy = all(status.get('healthy', False) for status in health_status.values())

    if all_healthy:
        logger.info('All system components are healthy')
    else:
        unhealthy = [name for name, status in health_status.items() if not status.get('healthy', False)]
        logger.warning(f'Unhealthy components: {", ".join(unhealthy)}')
    return all_healthy


def get_system_info(config: Optional[AppConfig] = None) -> Dict[str, Any]:
    if config is None:
        from .config import config as default_config
        config = default_config

    from .. import __version__

    return {
        'service_name': 'Recall',
        'version': __version__,
        'configuration': {
            'environment': config.environment,
            'backend': config.backend.mode,
            'bedrock_llm_model': config.bedrock_llm.model_id,
            'bedrock_embed_model': config.bedrock_embed.model_id,
            'search_top_k': config.dashboard.search_top_k,
        },
        'health_status': get_health_status(config)
    }
