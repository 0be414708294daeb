"""
Amazon Bedrock embedding client for memory documents and search queries.
"""

import json
import random
import time
from typing import Any, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .config import BedrockEmbedConfig
from .logging_config import get_logger

logger = get_logger(__name__)


class BedrockEmbedError(Exception):
    """Custom exception for Bedrock embedding errors."""
    pass


class BedrockEmbed:
    """Titan or Cohere embeddings through bedrock-runtime ``invoke_model``."""

    def __init__(self, config: BedrockEmbedConfig, client: Optional[Any] = None):
        self.config = config
        self.model_id = config.model_id
        self.dimension = config.dimension
        self.bedrock = client or boto3.client(service_name='bedrock-runtime', region_name=config.region)

        logger.info(f'Initialized Bedrock Embed client with model: {self.model_id}')

    def _request_body(self, text: str, input_type: str) -> dict:
        model = self.model_id.lower()
        if 'titan' in model:
            return {'inputText': text, 'dimensions': self.dimension}
        if 'cohere' in model:
            if self.dimension != 1024:
                raise BedrockEmbedError(f'Cohere models only support 1024 dimensions, got {self.dimension}')
            return {'input_type': input_type, 'texts': [text]}
        raise BedrockEmbedError(f'Unsupported embedding model: {self.model_id}')

    @staticmethod
    def _vector(result: dict) -> Optional[List[float]]:
        if 'embedding' in result:
            return result['embedding']
        embeddings = result.get('embeddings')
        return embeddings[0] if embeddings else None

    def embed(self, text: str, input_type: str = 'search_document') -> List[float]:
        """
        Embed a memory document or a query.

        Args:
            text: Text to embed
            input_type: 'search_document' or 'search_query' (used by Cohere models)

        Returns:
            Embedding vector; a zero vector for blank text

        Raises:
            BedrockEmbedError: If embedding generation fails
        """
        if not text or not text.strip():
            logger.warning(f'Empty text provided for {input_type} embedding')
            return [0.0] * self.dimension

        body = json.dumps(self._request_body(text, input_type))
        attempts = max(1, self.config.retry_attempts)

        for attempt in range(attempts):
            try:
                response = self.bedrock.invoke_model(body=body,
                                                     modelId=self.model_id,
                                                     accept='application/json',
                                                     contentType='application/json')
                vector = self._vector(json.loads(response.get('body').read()))
                if vector is None:
                    raise BedrockEmbedError('Embedding missing from response')
                return vector

            except (ClientError, BotoCoreError) as e:
                logger.warning(f'Bedrock Embed attempt {attempt + 1}/{attempts} failed: {e}')
                if attempt < attempts - 1:
                    time.sleep(self.config.retry_delay * (2**attempt) + random.uniform(0, 1))
                else:
                    raise BedrockEmbedError(f'Bedrock Embed failed after {attempts} attempts: {e}')

        raise BedrockEmbedError(f'Bedrock Embed failed after {attempts} attempts')

    def embed_document(self, text: str) -> List[float]:
        return self.embed(text, 'search_document')

    def embed_query(self, text: str) -> List[float]:
        return self.embed(text, 'search_query')

    def health_check(self) -> bool:
        try:
            return len(self.embed_document('test')) == self.dimension
        except Exception as e:
            logger.error(f'Bedrock Embed health check failed: {e}')
            return False
