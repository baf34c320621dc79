"""
Oneflow client tests. requests.get is patched; nothing leaves the process.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from services.oneflow import ConfigurationError, OneflowAPIError, OneflowClient

GET = 'services.oneflow.oneflow_client.requests.get'


def make_response(body=None, status_code=200, text=''):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.text = text
    response.json.return_value = body
    return response


@pytest.fixture
def oneflow():
    return OneflowClient(api_token='token-123', user_email='sync@begone.se',
                         base_url='https://api.example.com/v1/')


class TestConstruction:

    def test_requires_credentials(self):
        with pytest.raises(ConfigurationError):
            OneflowClient(api_token='', user_email='sync@begone.se')
        with pytest.raises(ConfigurationError):
            OneflowClient(api_token='token', user_email=None)

    def test_from_config(self):
        client = OneflowClient.from_config({
            'ONEFLOW_API_TOKEN': 'abc',
            'ONEFLOW_USER_EMAIL': 'a@b.se',
            'ONEFLOW_API_URL': None,
        })
        assert client.base_url == 'https://api.oneflow.com/v1'
        assert client.timeout == 30


class TestRequests:

    def test_auth_headers(self, oneflow):
        with patch(GET, return_value=make_response({'id': 1})) as mock_get:
            oneflow.get_document(1)

        args, kwargs = mock_get.call_args
        assert args[0] == 'https://api.example.com/v1/contracts/1'
        assert kwargs['headers']['x-oneflow-api-token'] == 'token-123'
        assert kwargs['headers']['x-oneflow-user-email'] == 'sync@begone.se'
        assert kwargs['timeout'] == 30

    def test_error_status_carries_body(self, oneflow):
        with patch(GET, return_value=make_response(status_code=401, text='{"error":"unauthorized"}')):
            with pytest.raises(OneflowAPIError) as exc_info:
                oneflow.get_document(1)

        assert exc_info.value.status_code == 401
        assert 'unauthorized' in exc_info.value.response_body

    def test_connection_error(self, oneflow):
        with patch(GET, side_effect=requests.exceptions.ConnectionError('refused')):
            with pytest.raises(OneflowAPIError, match='refused'):
                oneflow.get_document(1)


class TestListDocuments:

    def test_envelope_with_next_link(self, oneflow):
        body = {
            'data': [{'id': 3}, {'id': 2}],
            'count': 10,
            '_links': {'next': {'href': '/contracts?offset=4'}},
        }
        with patch(GET, return_value=make_response(body)) as mock_get:
            page = oneflow.list_documents(page=2, page_size=2)

        assert mock_get.call_args.kwargs['params'] == {'offset': 2, 'limit': 2, 'sort': '-id'}
        assert [d['id'] for d in page.documents] == [3, 2]
        assert page.total_count == 10
        assert page.has_more is True

    def test_envelope_last_page(self, oneflow):
        body = {'data': [{'id': 1}], 'count': 3}
        with patch(GET, return_value=make_response(body)):
            page = oneflow.list_documents(page=2, page_size=2)

        assert page.has_more is False

    def test_bare_list(self, oneflow):
        with patch(GET, return_value=make_response([{'id': 1}, {'id': 2}])):
            page = oneflow.list_documents(page=1, page_size=2)

        assert page.total_count == 2
        assert page.has_more is True


class TestDocumentDetail:

    BASE = {
        'id': 1001,
        'state': 'signed',
        'name': 'Skadedjursavtal',
        'template': {'id': 8486368, 'name': 'Skadedjursavtal'},
        'data_fields': [{'custom_id': 'foretag', 'value': 'Kund AB'}],
        'parties': [{'name': 'Inline party'}],
    }

    def _router(self, parties_response, products_response):
        def fake_get(url, headers=None, params=None, timeout=None):
            if url.endswith('/parties'):
                return parties_response
            if url.endswith('/products'):
                return products_response
            return make_response(self.BASE)
        return fake_get

    def test_full_detail(self, oneflow):
        products = make_response({'data': [
            {'products': [{'name': 'A'}, {'name': 'B'}]},
            {'name': 'C'},
        ]})
        parties = make_response([{'name': 'Kund AB'}])

        with patch(GET, side_effect=self._router(parties, products)):
            detail = oneflow.get_document_detail(1001)

        assert detail.id == '1001'
        assert detail.state == 'signed'
        assert detail.template_id == '8486368'
        assert detail.fields == {'foretag': 'Kund AB'}
        assert detail.parties == [{'name': 'Kund AB'}]
        assert [p['name'] for p in detail.products] == ['A', 'B', 'C']

    def test_auxiliary_failures_degrade(self, oneflow):
        failed = make_response(status_code=500, text='boom')

        with patch(GET, side_effect=self._router(failed, failed)):
            detail = oneflow.get_document_detail(1001)

        assert detail.parties == [{'name': 'Inline party'}]
        assert detail.products == []

    def test_base_failure_returns_none(self, oneflow):
        with patch(GET, return_value=make_response(status_code=404, text='not found')):
            assert oneflow.get_document_detail(1001) is None


class TestHealth:

    def test_check_health(self, oneflow):
        body = {'data': [{'id': 7, 'name': 'BeGone'}]}
        with patch(GET, return_value=make_response(body)) as mock_get:
            health = oneflow.check_health()

        assert mock_get.call_args.args[0].endswith('/workspaces')
        assert health['api_connection'] == 'OK'
        assert health['workspaces'] == [{'id': 7, 'name': 'BeGone'}]
