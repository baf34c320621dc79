# routes/oneflow/helpers.py
"""
Shared helpers for Oneflow routes: building the sync services for the
current app and request parsing.
"""

from flask import current_app, jsonify

from models import db
from services.oneflow import (
    ContractGateway,
    ContractImporter,
    CustomerProvisioner,
    OneflowClient,
    WebhookProcessor,
    get_default_registry,
)

CLIENT_EXTENSION = 'oneflow_client'
REGISTRY_EXTENSION = 'oneflow_template_registry'

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100


def get_oneflow_client():
    """
    The Oneflow client registered on the app, or a new one from config.

    Raises ConfigurationError when credentials are missing.
    """
    client = current_app.extensions.get(CLIENT_EXTENSION)
    if client is None:
        client = OneflowClient.from_config(current_app.config)
    return client


def get_template_registry():
    registry = current_app.extensions.get(REGISTRY_EXTENSION)
    if registry is None:
        registry = get_default_registry()
    return registry


def build_webhook_processor():
    gateway = ContractGateway(db.session)
    return WebhookProcessor(
        client=get_oneflow_client(),
        gateway=gateway,
        provisioner=CustomerProvisioner(db.session, gateway),
        registry=get_template_registry(),
        sign_key=current_app.config.get('ONEFLOW_WEBHOOK_SECRET')
    )


def build_importer():
    return ContractImporter(
        client=get_oneflow_client(),
        gateway=ContractGateway(db.session),
        registry=get_template_registry()
    )


def parse_positive_int(value, default, maximum=None):
    """Parse a query/body number; invalid or non-positive values give default."""
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    if number < 1:
        return default
    if maximum is not None:
        number = min(number, maximum)
    return number


def error_response(message, status_code, **extra):
    body = {'success': False, 'error': message}
    body.update(extra)
    return jsonify(body), status_code
