"""
Oneflow Contract Sync

Keeps the contracts table in step with Oneflow, the e-signature
provider. Webhook deliveries and operator-initiated imports both go
through the same mapping and persistence path.

Usage:
    from services.oneflow import (
        OneflowClient, ContractGateway, CustomerProvisioner,
        WebhookProcessor, get_default_registry
    )

    gateway = ContractGateway(db.session)
    processor = WebhookProcessor(
        client=OneflowClient.from_config(app.config),
        gateway=gateway,
        provisioner=CustomerProvisioner(db.session, gateway),
        registry=get_default_registry(),
        sign_key=app.config['ONEFLOW_WEBHOOK_SECRET']
    )
    result = processor.process(payload)
"""

from .types import (
    CONTRACT,
    OFFER,
    TemplateDefinition,
    FieldMapping,
    DocumentPage,
    DocumentDetail,
    UpsertResult,
    ProvisioningOk,
    ProvisioningSkipped,
    ProvisioningFailed,
    EventOutcome,
    DeliveryResult,
)

from .exceptions import (
    OneflowError,
    ConfigurationError,
    OneflowAPIError,
    SignatureError,
    PayloadError,
    DocumentUnavailableError,
    PersistenceError,
)

from .template_registry import TemplateRegistry, get_default_registry
from .field_mapper import map_fields, build_contract_record, calculate_total_value
from .document_type import resolve_document_type
from .oneflow_client import OneflowClient
from .contract_gateway import ContractGateway
from .customer_provisioner import CustomerProvisioner
from .webhook_processor import WebhookProcessor, verify_signature, compute_signature
from .contract_importer import ContractImporter

__all__ = [
    # Types
    'CONTRACT',
    'OFFER',
    'TemplateDefinition',
    'FieldMapping',
    'DocumentPage',
    'DocumentDetail',
    'UpsertResult',
    'ProvisioningOk',
    'ProvisioningSkipped',
    'ProvisioningFailed',
    'EventOutcome',
    'DeliveryResult',

    # Exceptions
    'OneflowError',
    'ConfigurationError',
    'OneflowAPIError',
    'SignatureError',
    'PayloadError',
    'DocumentUnavailableError',
    'PersistenceError',

    # Services
    'TemplateRegistry',
    'get_default_registry',
    'map_fields',
    'build_contract_record',
    'calculate_total_value',
    'resolve_document_type',
    'OneflowClient',
    'ContractGateway',
    'CustomerProvisioner',
    'WebhookProcessor',
    'verify_signature',
    'compute_signature',
    'ContractImporter',
]
