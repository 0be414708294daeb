"""
Amazon Bedrock Rerank client for ordering semantic search candidates.
"""

import json
import random
import time
from typing import Any, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .config import BedrockRerankConfig
from .logging_config import get_logger

logger = get_logger(__name__)

RERANK_REGIONS = ('us-west-2', 'ap-northeast-1', 'ca-central-1', 'eu-central-1')


class BedrockRerankError(Exception):
    """Custom exception for Bedrock Rerank errors."""
    pass


class BedrockRerank:

    def __init__(self, config: BedrockRerankConfig, client: Optional[Any] = None):
        if config.region not in RERANK_REGIONS:
            raise BedrockRerankError(f'Rerank models are not available in {config.region}')
        self.config = config
        self.model_id = config.model_id
        self.bedrock_runtime = client or boto3.client('bedrock-runtime', region_name=config.region)
        logger.info(f'Initialized Bedrock Rerank client in region: {config.region}, with model: {config.model_id}')

    def rerank(self, query: str, documents: List[str], top_k: Optional[int] = None) -> List[int]:
        """
        Order documents by relevance to the query.

        Args:
            query: Search query string
            documents: Candidate texts
            top_k: Number of results to keep (default: all)

        Returns:
            Indices into ``documents``, most relevant first

        Raises:
            BedrockRerankError: If reranking fails
        """
        if not query or not query.strip() or not documents:
            return []

        top_n = min(top_k or len(documents), len(documents))
        data = {'query': query.strip(), 'documents': documents, 'top_n': top_n}
        if 'cohere' in self.model_id.lower():
            data['api_version'] = 2
        body = json.dumps(data)

        logger.debug(f'Reranking {len(documents)} documents for query: {query[:50]}...')

        attempts = max(1, self.config.retry_attempts)
        for attempt in range(attempts):
            try:
                response = self.bedrock_runtime.invoke_model(modelId=self.model_id,
                                                             accept='application/json',
                                                             contentType='application/json',
                                                             body=body)
                response_body = json.loads(response.get('body').read())
            except (ClientError, BotoCoreError, json.JSONDecodeError) as e:
                logger.warning(f'Bedrock Rerank attempt {attempt + 1}/{attempts} failed: {e}')
                if attempt < attempts - 1:
                    time.sleep(self.config.retry_delay * (2**attempt) + random.uniform(0, 1))
                    continue
                raise BedrockRerankError(f'Bedrock Rerank failed after {attempts} attempts: {e}')

            if 'results' not in response_body:
                logger.error('Invalid response format from Bedrock rerank')
                raise BedrockRerankError('Invalid response format')
            return [result['index'] for result in response_body['results']]

        raise BedrockRerankError(f'Bedrock Rerank failed after {attempts} attempts')

    def health_check(self) -> bool:
        try:
            return len(self.rerank('test query', ['Test document 1', 'Test document 2'], top_k=1)) > 0
        except Exception as e:
            logger.error(f'Bedrock Rerank health check failed: {e}')
            return False
