"""
Amazon Bedrock LLM client used for insights and assistant answers.
"""

import random
import time
from typing import Any, List, Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from .config import BedrockLLMConfig
from .logging_config import get_logger

logger = get_logger(__name__)


class BedrockLLMError(Exception):
    """Custom exception for Bedrock LLM errors."""
    pass


class BedrockLLM:
    """Amazon Bedrock Converse client with bounded attempts."""

    def __init__(self, config: BedrockLLMConfig, client: Optional[Any] = None):
        """
        Initialize Bedrock LLM client.

        Args:
            config: BedrockLLMConfig instance with connection parameters
            client: Pre-built bedrock-runtime client
        """
        self.config = config
        self.model_id = config.model_id
        self.bedrock_runtime = client or boto3.client('bedrock-runtime',
                                                      region_name=config.region,
                                                      config=BotoConfig(connect_timeout=60,
                                                                        read_timeout=300,
                                                                        retries={'max_attempts': 0}))

        logger.info(f'Initialized Bedrock LLM client with model: {self.model_id}')

    def generate(self,
                 prompt: str,
                 system_prompt: str,
                 prefill: Optional[str] = None,
                 max_tokens: Optional[int] = None,
                 temperature: Optional[float] = None,
                 stop_sequences: Optional[List[str]] = None) -> str:
        """
        Generate a single completion.

        Args:
            prompt: User turn text
            system_prompt: System prompt for the conversation
            prefill: Optional start of the assistant turn (e.g. an opening code fence)
            max_tokens: Maximum tokens to generate (uses config default if None)
            temperature: Temperature for generation (uses config default if None)
            stop_sequences: Stop sequences for generation

        Returns:
            The generated text

        Raises:
            BedrockLLMError: If every attempt fails
        """
        messages = [{'role': 'user', 'content': [{'text': prompt}]}]
        if prefill:
            messages.append({'role': 'assistant', 'content': [{'text': prefill}]})

        inference_config = {
            'maxTokens': max_tokens or self.config.max_tokens,
            'temperature': self.config.temperature if temperature is None else temperature,
            'stopSequences': stop_sequences or [],
        }

        attempts = max(1, self.config.retry_attempts)
        for attempt in range(attempts):
            try:
                response = self.bedrock_runtime.converse(modelId=self.model_id,
                                                         messages=messages,
                                                         system=[{'text': system_prompt}],
                                                         inferenceConfig=inference_config)
                blocks = response.get('output', {}).get('message', {}).get('content', [])
                text = ''.join(block.get('text', '') for block in blocks)
                logger.debug(f'Bedrock LLM response generated (length: {len(text)})')
                return text

            except (ClientError, BotoCoreError) as e:
                logger.warning(f'Bedrock LLM attempt {attempt + 1}/{attempts} failed: {e}')
                if attempt < attempts - 1:
                    # Exponential backoff with jitter
                    time.sleep(self.config.retry_delay * (2**attempt) + random.uniform(0, 1))
                else:
                    raise BedrockLLMError(f'Bedrock LLM failed after {attempts} attempts: {e}')

        raise BedrockLLMError(f'Bedrock LLM failed after {attempts} attempts')

    def health_check(self) -> bool:
        try:
            response = self.generate('Hi', "You are a health check. Respond with just 'OK'.", max_tokens=10, temperature=0.0)
            return len(response.strip()) > 0
        except Exception as e:
            logger.error(f'Bedrock LLM health check failed: {e}')
            return False
