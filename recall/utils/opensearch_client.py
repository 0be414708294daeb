"""
OpenSearch client wrapper for the memory index (storage, keyword and vector search).
"""

import time
from typing import Any, Dict, List, Optional

import boto3
from opensearchpy import OpenSearch, RequestsHttpConnection
from opensearchpy.exceptions import OpenSearchException
from requests_aws4auth import AWS4Auth

from .config import OpenSearchConfig
from .logging_config import get_logger

logger = get_logger(__name__)

KEYWORD_FIELDS = ['title^2', 'content', 'tags']


class OpenSearchError(Exception):
    """Custom exception for OpenSearch errors."""
    pass


def _hits(response: Dict[str, Any]) -> List[Dict[str, Any]]:
    return [{'id': hit['_id'], 'score': hit.get('_score') or 0.0, 'document': hit['_source']} for hit in response['hits']['hits']]


def _normalize(results: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Min-max normalize scores into 0-1 in place."""
    if not results:
        return results
    scores = [r['score'] for r in results]
    low, high = min(scores), max(scores)
    if high == low:
        return results
    for result in results:
        result['score'] = (result['score'] - low) / (high - low)
    return results


class OpenSearchClient:
    """OpenSearch client with AWS authentication, scoped per user by a ``user_id`` filter."""

    def __init__(self, config: OpenSearchConfig, client: Optional[OpenSearch] = None):
        """
        Initialize OpenSearch client.

        Args:
            config: OpenSearchConfig instance with connection parameters
            client: Pre-built client, skips AWS credential lookup when given
        """
        self.config = config
        self.index_name = config.index_name

        if client is None:
            credentials = boto3.Session().get_credentials()
            auth = AWS4Auth(region=config.region, service='aoss', refreshable_credentials=credentials)
            endpoint = config.endpoint.split('://', 1)[-1]
            client = OpenSearch(hosts=[{
                'host': endpoint,
                'port': config.port
            }],
                                http_auth=auth,
                                use_ssl=True,
                                verify_certs=True,
                                connection_class=RequestsHttpConnection)
        self.client = client

        logger.info(f'Initialized OpenSearch client for index {self.index_name} at {config.endpoint}')

    def create_index_if_not_exists(self, sync_wait: float = 15.0) -> str:
        """
        Create the memory index if it doesn't exist.

        Returns:
            'exists', 'created' or 'failed'
        """
        try:
            if self.client.indices.exists(index=self.index_name):
                logger.debug(f'Index {self.index_name} already exists')
                return 'exists'

            index_body = {
                'mappings': {
                    'properties': {
                        'id': {'type': 'keyword'},
                        'user_id': {'type': 'keyword'},
                        'type': {'type': 'keyword'},
                        'title': {'type': 'text'},
                        'content': {'type': 'text'},
                        'source': {'type': 'keyword'},
                        'tags': {'type': 'text', 'fields': {'raw': {'type': 'keyword'}}},
                        'metadata': {'type': 'object', 'enabled': False},
                        'embedding': {
                            'type': 'knn_vector',
                            'dimension': self.config.dimension,
                            'method': {
                                'name': 'hnsw',
                                'space_type': 'cosinesimil',
                                'engine': 'nmslib'
                            }
                        },
                        'created_at': {'type': 'date'},
                        'updated_at': {'type': 'date'}
                    }
                },
                'settings': {
                    'index': {
                        'knn': True,
                        'knn.algo_param.ef_search': 100
                    }
                }
            }

            response = self.client.indices.create(index=self.index_name, body=index_body)
            if not response.get('acknowledged', False):
                return 'failed'

            logger.info(f'Created index {self.index_name}, waiting {sync_wait}s for sync-up')
            if sync_wait:
                time.sleep(sync_wait)
            return 'created'

        except OpenSearchException as e:
            logger.error(f'Error creating index {self.index_name}: {e}')
            raise OpenSearchError(f'Failed to create index: {e}')

    def index_document(self, doc_id: str, document: Dict[str, Any]) -> bool:
        """
        Create or overwrite a memory document.

        Returns:
            True if OpenSearch reports the document created or updated
        """
        try:
            response = self.client.index(index=self.index_name, id=doc_id, body=document, refresh=True)
        except OpenSearchException as e:
            logger.error(f'Error indexing document {doc_id}: {e}')
            raise OpenSearchError(f'Failed to index document: {e}')

        success = response.get('result') in ['created', 'updated']
        if success:
            logger.debug(f'Indexed document {doc_id} in {self.index_name}')
        else:
            logger.warning(f'Unexpected result indexing document {doc_id}: {response}')
        return success

    def list_documents(self, user_id: str, size: int = 1000) -> List[Dict[str, Any]]:
        """All memory documents for one user, newest first."""
        search_body = {
            'size': size,
            'query': {'bool': {'filter': [{'term': {'user_id': user_id}}]}},
            'sort': [{'created_at': {'order': 'desc'}}],
            '_source': {'excludes': ['embedding']}
        }
        try:
            return _hits(self.client.search(index=self.index_name, body=search_body))
        except OpenSearchException as e:
            logger.error(f'Error listing documents for user {user_id}: {e}')
            raise OpenSearchError(f'Failed to list documents: {e}')

    def keyword_search(self, query_text: str, user_id: str, top_k: int = 20) -> List[Dict[str, Any]]:
        """Full-text match over title, content and tags."""
        search_body = {
            'size': top_k,
            'query': {
                'bool': {
                    'must': [{'multi_match': {'query': query_text, 'fields': KEYWORD_FIELDS}}],
                    'filter': [{'term': {'user_id': user_id}}]
                }
            },
            '_source': {'excludes': ['embedding']}
        }
        try:
            results = _hits(self.client.search(index=self.index_name, body=search_body))
        except OpenSearchException as e:
            logger.error(f'Error performing keyword search: {e}')
            raise OpenSearchError(f'Keyword search failed: {e}')

        logger.debug(f'Keyword search returned {len(results)} results for user {user_id}')
        return results

    def vector_search(self, query_vector: List[float], user_id: str, top_k: int = 20) -> List[Dict[str, Any]]:
        search_body = {
            'size': top_k,
            'query': {
                'bool': {
                    'must': [{'knn': {'embedding': {'vector': query_vector, 'k': top_k}}}],
                    'filter': [{'term': {'user_id': user_id}}]
                }
            },
            '_source': {'excludes': ['embedding']}
        }
        try:
            results = _hits(self.client.search(index=self.index_name, body=search_body))
        except OpenSearchException as e:
            logger.error(f'Error performing vector search: {e}')
            raise OpenSearchError(f'Vector search failed: {e}')

        logger.debug(f'Vector search returned {len(results)} results for user {user_id}')
        return results

    def hybrid_search(self,
                      query_text: str,
                      query_vector: List[float],
                      user_id: str,
                      top_k: int = 20,
                      vector_weight: float = 0.5) -> List[Dict[str, Any]]:
        """Blend normalized vector and keyword scores, best first.

        Args:
            query_text: Text query for keyword search
            query_vector: Vector for similarity search
            user_id: User ID to filter results
            top_k: Number of results to return
            vector_weight: Weight for vector search (0-1)
        """
        vector_results = _normalize(self.vector_search(query_vector, user_id, top_k * 2))
        keyword_results = _normalize(self.keyword_search(query_text, user_id, top_k * 2))
        keyword_weight = 1.0 - vector_weight

        combined: Dict[str, Dict[str, Any]] = {}
        for result in vector_results:
            combined[result['id']] = {'document': result['document'], 'score': result['score'] * vector_weight}
        for result in keyword_results:
            entry = combined.setdefault(result['id'], {'document': result['document'], 'score': 0.0})
            entry['score'] += result['score'] * keyword_weight

        final_results = [{'id': doc_id, **data} for doc_id, data in combined.items()]
        final_results.sort(key=lambda x: x['score'], reverse=True)
        return final_results[:top_k]

    def delete_document(self, doc_id: str) -> bool:
        """
        Delete a memory document.

        Returns:
            True if deleted, False if it did not exist
        """
        try:
            response = self.client.delete(index=self.index_name, id=doc_id, refresh=True)
        except OpenSearchException as e:
            # OpenSearchException args: (status_code, error_type, error_info)
            if len(e.args) >= 2 and (e.args[0] == 404 or e.args[1] == 'not_found'):
                logger.warning(f'Document {doc_id} not found for deletion')
                return False
            logger.error(f'Error deleting document {doc_id}: {e}')
            raise OpenSearchError(f'Failed to delete document: {e}')

        success = response.get('result') == 'deleted'
        if not success:
            logger.warning(f'Document {doc_id} not found for deletion')
        return success

    def delete_by_user(self, user_id: str) -> int:
        """Remove every memory owned by a user. Returns the number deleted."""
        try:
            response = self.client.delete_by_query(index=self.index_name,
                                                   body={'query': {'term': {'user_id': user_id}}},
                                                   refresh=True)
        except OpenSearchException as e:
            logger.error(f'Error deleting memories for user {user_id}: {e}')
            raise OpenSearchError(f'Failed to delete user memories: {e}')
        return response.get('deleted', 0)

    def health_check(self) -> bool:
        try:
            return self.client.indices.exists(index=self.index_name) in [True, False]
        except Exception as e:
            logger.error(f'OpenSearch health check failed: {e}')
            return False
