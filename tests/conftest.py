"""
Shared fixtures for the Oneflow sync test suite.

Every test that touches the database gets a fresh in-memory SQLite
schema. The Oneflow API is never called: FakeOneflowClient serves
canned document details instead.
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from app import create_app
from models import db as _db
from routes.oneflow.helpers import CLIENT_EXTENSION
from services.oneflow import (
    ContractGateway,
    CustomerProvisioner,
    DocumentDetail,
    DocumentPage,
    OneflowAPIError,
    WebhookProcessor,
    compute_signature,
    get_default_registry,
)

WEBHOOK_SECRET = 'test-secret'

CONTRACT_TEMPLATE_ID = '8486368'
OFFER_TEMPLATE_ID = '8598798'

CONTRACT_FIELDS = {
    'anstalld': 'Erik Tekniker',
    'e-post-anstlld': 'erik@begone.se',
    'avtalslngd': '12',
    'begynnelsedag': '2025-01-01',
    'Kontaktperson': 'Anna Kund',
    'e-post-kontaktperson': 'anna@kund.se',
    'telefonnummer-kontaktperson': '070-1234567',
    'utforande-adress': 'Storgatan 1, Stockholm',
    'foretag': 'Kund AB',
    'org-nr': '556677-8899',
    'stycke-1': 'Del ett',
    'stycke-2': 'Del två',
}

OFFER_FIELDS = {
    'vr-kontaktperson': 'Erik Tekniker',
    'kontaktperson': 'Per Privat',
    'kontaktperson-e-post': 'per@privat.se',
    'kund': 'Per Privat',
    'arbetsbeskrivning': 'Sanering av vind',
}


class FakeOneflowClient:
    """Stands in for OneflowClient; serves details registered by tests."""

    def __init__(self):
        self.details = {}
        self.errors = {}
        self.pages = {}
        self.list_error = None
        self.health = {'api_connection': 'OK', 'workspaces_accessible': True, 'workspaces': []}
        self.detail_calls = []

    def add(self, detail):
        self.details[detail.id] = detail
        return detail

    def get_document_detail(self, document_id):
        document_id = str(document_id)
        self.detail_calls.append(document_id)
        if document_id in self.errors:
            raise self.errors[document_id]
        return self.details.get(document_id)

    def list_documents(self, page=1, page_size=50):
        if self.list_error:
            raise self.list_error
        return self.pages.get(page, DocumentPage(documents=[], total_count=0, has_more=False))

    def check_health(self):
        if isinstance(self.health, Exception):
            raise self.health
        return self.health


def build_detail(document_id='1001', state='pending', template_id=CONTRACT_TEMPLATE_ID,
                 name='Skadedjursavtal Kund AB', template_name='Skadedjursavtal',
                 fields=None, parties=None, products=None):
    """A DocumentDetail shaped like the client's output."""
    template = {'id': int(template_id), 'name': template_name} if template_id else None
    return DocumentDetail(
        metadata={
            'id': int(document_id),
            'state': state,
            'name': name,
            'template': template,
        },
        fields=dict(CONTRACT_FIELDS if fields is None else fields),
        parties=parties if parties is not None else [],
        products=products if products is not None else [],
    )


def build_offer_detail(document_id='2001', **overrides):
    options = {
        'template_id': OFFER_TEMPLATE_ID,
        'name': 'Offertförslag Per Privat',
        'template_name': 'Offertförslag',
        'fields': OFFER_FIELDS,
    }
    options.update(overrides)
    return build_detail(document_id, **options)


def signed_payload(contract_id, event_types, callback_id='cb-1', secret=WEBHOOK_SECRET):
    """A webhook delivery with a valid signature."""
    return {
        'contract': {'id': int(contract_id)},
        'callback_id': callback_id,
        'events': [{'type': event_type} for event_type in event_types],
        'signature': compute_signature(callback_id, secret),
    }


@pytest.fixture
def app():
    app = create_app('config.TestConfig')
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture
def fake_client(app):
    client = FakeOneflowClient()
    app.extensions[CLIENT_EXTENSION] = client
    return client


@pytest.fixture
def client(app, fake_client):
    return app.test_client()


@pytest.fixture
def registry():
    return get_default_registry()


@pytest.fixture
def gateway(db):
    return ContractGateway(db.session)


@pytest.fixture
def provisioner(db, gateway):
    return CustomerProvisioner(db.session, gateway)


@pytest.fixture
def processor(fake_client, gateway, provisioner, registry):
    return WebhookProcessor(
        client=fake_client,
        gateway=gateway,
        provisioner=provisioner,
        registry=registry,
        sign_key=WEBHOOK_SECRET
    )


@pytest.fixture
def api_error():
    return OneflowAPIError('Oneflow API error 500 on /contracts', status_code=500,
                           response_body='{"error": "boom"}')
