"""
HTTP client for the Recall REST backend functions.
"""

from typing import Any, Dict, Optional

import requests

from .config import BackendConfig
from .logging_config import get_logger

logger = get_logger(__name__)


class BackendClientError(Exception):
    """Raised when a backend call fails or returns a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class BackendClient:
    """Thin requests wrapper: bearer auth, JSON bodies, one attempt per call."""

    def __init__(self, config: BackendConfig, http: Optional[requests.Session] = None):
        self.config = config
        self.base_url = config.api_url.rstrip('/')
        self.http = http or requests.Session()
        logger.info(f'Initialized backend client for {self.base_url}')

    def request(self, method: str, path: str, token: Optional[str] = None, payload: Optional[Dict[str, Any]] = None) -> Any:
        """
        Call a backend endpoint.

        Args:
            method: HTTP method
            path: Path relative to the API base URL
            token: Session token sent as a bearer credential
            payload: JSON body

        Returns:
            Decoded JSON body, or None for empty responses

        Raises:
            BackendClientError: On transport failure or non-2xx status
        """
        url = f'{self.base_url}/{path.lstrip("/")}'
        headers = {'Content-Type': 'application/json'}
        if token:
            headers['Authorization'] = f'Bearer {token}'

        try:
            response = self.http.request(method, url, headers=headers, json=payload, timeout=self.config.timeout)
        except requests.RequestException as e:
            logger.error(f'{method} {path} failed: {e}')
            raise BackendClientError(f'{method} {path} failed: {e}')

        if not response.ok:
            logger.error(f'{method} {path} returned {response.status_code}')
            raise BackendClientError(f'{method} {path} returned {response.status_code}', response.status_code)

        logger.debug(f'{method} {path} -> {response.status_code}')
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise BackendClientError(f'{method} {path} returned invalid JSON: {e}', response.status_code)

    def health_check(self) -> bool:
        try:
            self.request('GET', '/health')
            return True
        except BackendClientError as e:
            logger.error(f'Backend health check failed: {e}')
            return False
