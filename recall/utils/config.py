"""
Configuration management for the Recall backends and application settings.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


@dataclass
class BedrockLLMConfig:
    """Configuration for the Amazon Bedrock LLM used for insights and chat answers."""
    region: str
    model_id: str
    max_tokens: int
    temperature: float
    retry_attempts: int
    retry_delay: float


@dataclass
class BedrockEmbedConfig:
    """Configuration for the Amazon Bedrock embedding model used by semantic search."""
    region: str
    model_id: str
    dimension: int
    retry_attempts: int
    retry_delay: float


@dataclass
class BedrockRerankConfig:
    """Configuration for the Amazon Bedrock rerank model used by semantic search."""
    region: str
    model_id: str
    retry_attempts: int
    retry_delay: float


@dataclass
class OpenSearchConfig:
    """Configuration for the OpenSearch memory index."""
    endpoint: str
    port: int
    region: str
    index_name: str
    dimension: int


@dataclass
class BackendConfig:
    """Configuration for the REST backend (connectors, preferences, telemetry)."""
    mode: str
    api_url: str
    timeout: float


@dataclass
class SessionConfig:
    """Configuration for sign-in and sign-up rules."""
    min_password_length: int
    google_email: str
    google_name: str


@dataclass
class DashboardConfig:
    """Configuration for dashboard behaviour."""
    search_top_k: int
    export_dir: str


@dataclass
class MCPConfig:
    """Configuration for MCP interface."""
    transport: str
    host: str
    port: int


@dataclass
class AppConfig:
    """Main application configuration."""
    environment: str
    log_level: str
    backend: BackendConfig
    session: SessionConfig
    dashboard: DashboardConfig
    bedrock_llm: BedrockLLMConfig
    bedrock_embed: BedrockEmbedConfig
    bedrock_rerank: BedrockRerankConfig
    opensearch: OpenSearchConfig
    mcp: MCPConfig


def load_config() -> AppConfig:
    """Load configuration from environment variables with defaults."""
    environment = os.getenv('ENVIRONMENT', 'development')

    backend_config = BackendConfig(mode=os.getenv('RECALL_BACKEND', 'local').lower(),
                                   api_url=os.getenv('RECALL_API_URL', 'http://localhost:54321/functions/v1/recall'),
                                   timeout=float(os.getenv('RECALL_API_TIMEOUT', '10.0')))

    session_config = SessionConfig(min_password_length=int(os.getenv('RECALL_MIN_PASSWORD_LENGTH', '6')),
                                   google_email=os.getenv('RECALL_GOOGLE_EMAIL', 'googleuser@example.com'),
                                   google_name=os.getenv('RECALL_GOOGLE_NAME', 'Google User'))

    dashboard_config = DashboardConfig(search_top_k=int(os.getenv('RECALL_SEARCH_TOP_K', '10')),
                                       export_dir=os.getenv('RECALL_EXPORT_DIR', '.'))

    # Remote calls fail immediately unless attempts are raised explicitly
    bedrock_llm_config = BedrockLLMConfig(region=os.getenv('BEDROCK_LLM_AWS_REGION', 'us-east-1'),
                                          model_id=os.getenv('BEDROCK_LLM_MODEL_ID', 'anthropic.claude-3-haiku-20240307-v1:0'),
                                          max_tokens=int(os.getenv('BEDROCK_LLM_MAX_TOKENS', '2048')),
                                          temperature=float(os.getenv('BEDROCK_LLM_TEMPERATURE', '0.2')),
                                          retry_attempts=int(os.getenv('BEDROCK_LLM_RETRY_ATTEMPTS', '1')),
                                          retry_delay=float(os.getenv('BEDROCK_LLM_RETRY_DELAY', '1.0')))

    bedrock_embed_config = BedrockEmbedConfig(region=os.getenv('BEDROCK_EMBED_AWS_REGION', 'us-east-1'),
                                              model_id=os.getenv('BEDROCK_EMBED_MODEL_ID', 'amazon.titan-embed-text-v2:0'),
                                              dimension=int(os.getenv('BEDROCK_EMBED_DIMENSION', '1024')),
                                              retry_attempts=int(os.getenv('BEDROCK_EMBED_RETRY_ATTEMPTS', '1')),
                                              retry_delay=float(os.getenv('BEDROCK_EMBED_RETRY_DELAY', '1.0')))

    bedrock_rerank_config = BedrockRerankConfig(region=os.getenv('BEDROCK_RERANK_AWS_REGION', 'us-west-2'),
                                                model_id=os.getenv('BEDROCK_RERANK_MODEL_ID', 'amazon.rerank-v1:0'),
                                                retry_attempts=int(os.getenv('BEDROCK_RERANK_RETRY_ATTEMPTS', '1')),
                                                retry_delay=float(os.getenv('BEDROCK_RERANK_RETRY_DELAY', '1.0')))

    opensearch_config = OpenSearchConfig(endpoint=os.getenv('OPENSEARCH_ENDPOINT', 'localhost'),
                                         port=int(os.getenv('OPENSEARCH_PORT', '443')),
                                         region=os.getenv('OPENSEARCH_AWS_REGION', 'us-east-1'),
                                         index_name=os.getenv('OPENSEARCH_INDEX', 'recall_memories'),
                                         dimension=int(os.getenv('OPENSEARCH_DIMENSION', '1024')))

    mcp_config = MCPConfig(transport=os.getenv('MCP_TRANSPORT', 'sse'),
                           host=os.getenv('MCP_HOST', '127.0.0.1'),
                           port=int(os.getenv('MCP_PORT', '8000')))

    return AppConfig(environment=environment,
                     log_level=os.getenv('LOG_LEVEL', 'INFO'),
                     backend=backend_config,
                     session=session_config,
                     dashboard=dashboard_config,
                     bedrock_llm=bedrock_llm_config,
                     bedrock_embed=bedrock_embed_config,
                     bedrock_rerank=bedrock_rerank_config,
                     opensearch=opensearch_config,
                     mcp=mcp_config)


# Global configuration instance
config = load_config()
