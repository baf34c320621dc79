"""
Oneflow Client

Thin wrapper around the Oneflow REST API for the contract sync engine.
Read-only: fetches document lists and document details.

Credentials are passed in explicitly; the client holds no global state,
so tests and scripts can build as many clients as they need.

Usage:
    client = OneflowClient.from_config(current_app.config)
    page = client.list_documents(page=1, page_size=50)
    detail = client.get_document_detail('5012345')
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

import requests

from .exceptions import ConfigurationError, OneflowAPIError
from .field_mapper import data_fields_to_dict
from .types import DocumentDetail, DocumentPage

logger = logging.getLogger(__name__)

DEFAULT_API_URL = 'https://api.oneflow.com/v1'

# Request timeout
DEFAULT_TIMEOUT = 30


class OneflowClient:
    """
    Client for Oneflow API operations.

    Provides methods for:
        - Listing documents page by page
        - Fetching one document with parties and products
        - Checking API connectivity
    """

    def __init__(
        self,
        api_token: str,
        user_email: str,
        base_url: str = DEFAULT_API_URL,
        timeout: int = DEFAULT_TIMEOUT
    ):
        if not api_token or not user_email:
            raise ConfigurationError(
                "Oneflow API token and user email are both required"
            )
        self.api_token = api_token
        self.user_email = user_email
        self.base_url = (base_url or DEFAULT_API_URL).rstrip('/')
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> 'OneflowClient':
        """Build a client from a Flask config mapping."""
        return cls(
            api_token=config.get('ONEFLOW_API_TOKEN'),
            user_email=config.get('ONEFLOW_USER_EMAIL'),
            base_url=config.get('ONEFLOW_API_URL') or DEFAULT_API_URL,
            timeout=config.get('ONEFLOW_TIMEOUT') or DEFAULT_TIMEOUT
        )

    def _get_headers(self) -> Dict[str, str]:
        """Get request headers with auth."""
        return {
            'x-oneflow-api-token': self.api_token,
            'x-oneflow-user-email': self.user_email,
            'Accept': 'application/json'
        }

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        GET a path under the API root and decode the JSON body.

        Raises:
            OneflowAPIError: on connection failure or any non-2xx status,
                with the provider's status code and body attached.
        """
        url = f"{self.base_url}{path}"

        try:
            response = requests.get(
                url,
                headers=self._get_headers(),
                params=params,
                timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Oneflow request to {path} failed: {e}")
            raise OneflowAPIError(f"Request to {path} failed: {e}")

        if not response.ok:
            logger.error(f"Oneflow API error {response.status_code} on {path}")
            logger.error(f"Response body: {response.text}")
            raise OneflowAPIError(
                f"Oneflow API error {response.status_code} on {path}",
                status_code=response.status_code,
                response_body=response.text
            )

        try:
            return response.json()
        except ValueError as e:
            raise OneflowAPIError(
                f"Invalid JSON from {path}: {e}",
                status_code=response.status_code,
                response_body=response.text
            )

    # =========================================================================
    # LIST
    # =========================================================================

    def list_documents(self, page: int = 1, page_size: int = 50) -> DocumentPage:
        """
        Fetch one page of documents, newest first.

        Oneflow answers either with a bare list or with an envelope
        ({data, count, _links}); both are normalized.

        Args:
            page: 1-based page number
            page_size: Documents per page

        Returns:
            DocumentPage with the raw documents, total count and
            whether more pages follow
        """
        page = max(int(page), 1)
        page_size = max(int(page_size), 1)
        offset = (page - 1) * page_size

        logger.info(f"Fetching Oneflow documents, page {page}, page size {page_size}")

        body = self._get('/contracts', params={
            'offset': offset,
            'limit': page_size,
            'sort': '-id',
        })

        if isinstance(body, list):
            documents = body
            total_count = offset + len(documents)
            has_more = len(documents) == page_size
        elif isinstance(body, dict):
            documents = body.get('data') or []
            total_count = body.get('count')
            if total_count is None:
                total_count = offset + len(documents)
            links = body.get('_links') or {}
            if 'next' in links:
                has_more = bool(links.get('next'))
            else:
                has_more = offset + len(documents) < total_count
        else:
            raise OneflowAPIError(
                f"Unexpected list response type: {type(body).__name__}",
                status_code=200,
                response_body=str(body)
            )

        logger.info(f"Fetched {len(documents)} document(s) of {total_count}")
        return DocumentPage(documents=documents, total_count=total_count, has_more=has_more)

    # =========================================================================
    # DETAIL
    # =========================================================================

    def get_document(self, document_id) -> Dict[str, Any]:
        """Fetch a document's base metadata, including its data fields."""
        return self._get(f"/contracts/{document_id}")

    def get_parties(self, document_id) -> List[Dict[str, Any]]:
        body = self._get(f"/contracts/{document_id}/parties")
        return _unwrap_list(body)

    def get_products(self, document_id) -> List[Dict[str, Any]]:
        """Fetch products, flattening product groups into one list."""
        body = self._get(f"/contracts/{document_id}/products")
        products = []
        for item in _unwrap_list(body):
            if isinstance(item, dict) and 'products' in item:
                products.extend(item.get('products') or [])
            else:
                products.append(item)
        return products

    def get_document_detail(self, document_id) -> Optional[DocumentDetail]:
        """
        Fetch a document with its fields, parties and products.

        A failed base call returns None: without its own id, state and
        template the document cannot be synced. Failed parties or
        products calls degrade to empty lists.
        """
        try:
            metadata = self.get_document(document_id)
        except OneflowAPIError as e:
            logger.error(f"Could not fetch Oneflow document {document_id}: {e}")
            return None

        if not isinstance(metadata, dict):
            logger.error(f"Oneflow document {document_id}: unexpected response {type(metadata).__name__}")
            return None

        try:
            parties = self.get_parties(document_id)
        except OneflowAPIError as e:
            logger.warning(f"Document {document_id}: parties unavailable ({e}), continuing without")
            parties = []
        if not parties:
            parties = metadata.get('parties') or []

        try:
            products = self.get_products(document_id)
        except OneflowAPIError as e:
            logger.warning(f"Document {document_id}: products unavailable ({e}), continuing without")
            products = []

        return DocumentDetail(
            metadata=metadata,
            fields=data_fields_to_dict(metadata.get('data_fields')),
            parties=parties,
            products=products
        )

    # =========================================================================
    # DIAGNOSTICS
    # =========================================================================

    def check_health(self) -> Dict[str, Any]:
        """Verify the token works by listing workspaces."""
        body = self._get('/workspaces')
        workspaces = _unwrap_list(body)
        return {
            'api_connection': 'OK',
            'workspaces_accessible': len(workspaces) > 0,
            'workspaces': [
                {'id': ws.get('id'), 'name': ws.get('name')}
                for ws in workspaces if isinstance(ws, dict)
            ]
        }


def _unwrap_list(body: Any) -> List[Any]:
    """Accept either a bare list or a {data: [...]} envelope."""
    if isinstance(body, list):
        return body
    if isinstance(body, dict):
        return body.get('data') or []
    return []
