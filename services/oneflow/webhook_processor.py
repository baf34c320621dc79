"""
Webhook Processor

State machine for Oneflow webhook deliveries. One delivery carries one
or more events for a single document:

    1. Verify the signature (sha1 of callback_id + sign key)
    2. Fetch the document's current detail once
    3. Skip the whole delivery for drafts and non-allow-listed templates
    4. Apply each event in delivery order
    5. Isolate failures per event; the rest of the batch still runs

Status transitions driven by events:

    pending -> signed | declined
    signed -> active -> ended
    any -> overdue -> pending

'draft' is never persisted.
"""

import hashlib
import hmac
import logging
from typing import Any, Dict, Optional

from .contract_gateway import ContractGateway
from .customer_provisioner import CustomerProvisioner
from .document_type import resolve_document_type
from .exceptions import DocumentUnavailableError, PayloadError, SignatureError
from .field_mapper import build_contract_record
from .oneflow_client import OneflowClient
from .template_registry import TemplateRegistry
from .types import (
    CONTRACT, DeliveryResult, DocumentDetail, EventOutcome, ProvisioningFailed,
    ProvisioningSkipped, STATUS_ACTIVE, STATUS_DECLINED, STATUS_DRAFT, STATUS_ENDED,
    STATUS_OVERDUE, STATUS_PENDING, STATUS_SIGNED,
)

logger = logging.getLogger(__name__)

# Lifecycle events -> status they move the contract to
EVENT_STATUS_MAP = {
    'contract:publish': STATUS_PENDING,
    'contract:sign': STATUS_SIGNED,
    'contract:decline': STATUS_DECLINED,
    'contract:lifecycle_state:start': STATUS_ACTIVE,
    'contract:lifecycle_state:end': STATUS_ENDED,
    'contract:lifecycle_state:terminate': STATUS_ENDED,
    'contract:cancel': STATUS_ENDED,
    'contract:signing_period_expire': STATUS_OVERDUE,
    'contract:signing_period_revive': STATUS_PENDING,
    'contract:signature_reset': STATUS_PENDING,
}

# Lifecycle events that write the full mapped record instead of a status patch
FULL_UPSERT_EVENTS = {'contract:publish', 'contract:sign'}

# Events that may change business fields
CONTENT_EVENTS = {
    'contract:content_update',
    'data_field:update',
    'product:create',
    'product:update',
    'product:delete',
    'party:create',
    'party:update',
    'party:delete',
}

# Acknowledged, nothing persisted
INFORMATIONAL_EVENTS = {'comment:create'}
INFORMATIONAL_PREFIXES = ('participant:',)


def compute_signature(callback_id: str, sign_key: str) -> str:
    """Oneflow's webhook signature: sha1 hex of callback_id + sign key."""
    return hashlib.sha1(f"{callback_id}{sign_key}".encode('utf-8')).hexdigest()


def verify_signature(payload: Dict[str, Any], sign_key: Optional[str]) -> bool:
    """
    Check a delivery's signature.

    Returns True when verified and False when no sign key is configured
    (verification skipped, local and test setups only).

    Raises:
        SignatureError: signature missing or wrong
    """
    if not sign_key:
        logger.warning("ONEFLOW_WEBHOOK_SECRET is not set - skipping webhook signature verification")
        return False

    callback_id = payload.get('callback_id')
    received = payload.get('signature')
    if not callback_id or not received:
        logger.error("Webhook rejected: missing callback_id or signature")
        raise SignatureError("Missing callback_id or signature")

    expected = compute_signature(str(callback_id), sign_key)
    if not hmac.compare_digest(expected, str(received)):
        logger.error(f"Webhook rejected: invalid signature for callback_id {callback_id}")
        raise SignatureError("Invalid signature")

    logger.debug(f"Signature verified for callback_id {callback_id}")
    return True


def extract_contract_id(payload: Any) -> str:
    """
    Validate the delivery shape and return the Oneflow document id.

    Raises:
        PayloadError: body is not a dict, has no contract.id, or events
            is not a list
    """
    if not isinstance(payload, dict):
        raise PayloadError("Webhook body must be a JSON object")

    contract = payload.get('contract')
    if not isinstance(contract, dict) or contract.get('id') in (None, ''):
        raise PayloadError("Webhook body has no contract.id")

    events = payload.get('events', [])
    if not isinstance(events, list):
        raise PayloadError("Webhook events must be a list")

    return str(contract['id'])


class WebhookProcessor:
    """
    Applies Oneflow webhook deliveries to the contracts table.

    All collaborators are injected so tests can pass fakes.
    """

    def __init__(
        self,
        client: OneflowClient,
        gateway: ContractGateway,
        provisioner: CustomerProvisioner,
        registry: TemplateRegistry,
        sign_key: Optional[str] = None
    ):
        self.client = client
        self.gateway = gateway
        self.provisioner = provisioner
        self.registry = registry
        self.sign_key = sign_key

    def process(self, payload: Dict[str, Any]) -> DeliveryResult:
        """
        Process one delivery.

        Raises:
            PayloadError: malformed body
            SignatureError: bad signature
            DocumentUnavailableError: document detail could not be fetched
        """
        contract_id = extract_contract_id(payload)
        verified = verify_signature(payload, self.sign_key)
        events = payload.get('events') or []

        logger.info(
            f"Processing {len(events)} event(s) for Oneflow document {contract_id}: "
            f"{[e.get('type') if isinstance(e, dict) else e for e in events]}"
        )

        detail = self.client.get_document_detail(contract_id)
        if detail is None:
            raise DocumentUnavailableError(
                f"Could not fetch Oneflow document {contract_id}", contract_id
            )

        result = DeliveryResult(contract_id=contract_id, signature_verified=verified)

        skip_reason = self.gate(detail)
        if skip_reason:
            logger.info(f"Skipping delivery for document {contract_id}: {skip_reason}")
            result.skipped = True
            result.skip_reason = skip_reason
            return result

        document_type = resolve_document_type(
            self.registry,
            template_id=detail.template_id,
            document_name=detail.name,
            template_name=detail.template_name,
            raw_fields=detail.fields
        )

        for event in events:
            result.events.append(self._process_event(event, detail, document_type))

        failed = len(result.failed_events)
        logger.info(
            f"Document {contract_id}: {len(result.events) - failed} event(s) applied, {failed} failed"
        )
        return result

    def gate(self, detail: DocumentDetail) -> Optional[str]:
        """Reason to skip the whole delivery, or None to process it."""
        if (detail.state or '').lower() == STATUS_DRAFT:
            return 'draft'
        if not self.registry.is_allowed(detail.template_id):
            return f"template_not_allowed:{detail.template_id}"
        return None

    def _process_event(self, event: Any, detail: DocumentDetail, document_type: str) -> EventOutcome:
        event_type = event.get('type') if isinstance(event, dict) else None

        try:
            if not isinstance(event_type, str) or not event_type:
                raise PayloadError(f"Event has no type: {event!r}")
            return self._dispatch(event_type, detail, document_type)
        except Exception as e:
            logger.exception(f"Event {event_type!r} failed for document {detail.id}: {e}")
            return EventOutcome(event_type=event_type, action='failed', ok=False, error=str(e))

    def _dispatch(self, event_type: str, detail: DocumentDetail, document_type: str) -> EventOutcome:
        if event_type in FULL_UPSERT_EVENTS:
            status = EVENT_STATUS_MAP[event_type]
            record = build_contract_record(detail, document_type, status=status)
            self.gateway.upsert_contract(record, source_type='webhook')
            outcome = EventOutcome(event_type=event_type, action=f"upsert:{status}")

            if event_type == 'contract:sign':
                outcome.provisioning = self._provision(detail.id, document_type)
            return outcome

        if event_type in EVENT_STATUS_MAP:
            status = EVENT_STATUS_MAP[event_type]
            contract = self.gateway.patch_status(detail.id, status)
            action = f"status:{status}" if contract else 'status_not_applied'
            return EventOutcome(event_type=event_type, action=action)

        if event_type in CONTENT_EVENTS:
            self._upsert_content(detail, document_type)
            return EventOutcome(event_type=event_type, action='upsert:content')

        if event_type in INFORMATIONAL_EVENTS or event_type.startswith(INFORMATIONAL_PREFIXES):
            logger.debug(f"Informational event {event_type} for document {detail.id}")
            return EventOutcome(event_type=event_type, action='acknowledged')

        if event_type.startswith('contract:'):
            logger.info(f"Unrecognized contract event {event_type}, re-syncing document {detail.id}")
            self._upsert_content(detail, document_type)
            return EventOutcome(event_type=event_type, action='upsert:fallback')

        logger.info(f"Ignoring event {event_type} for document {detail.id}")
        return EventOutcome(event_type=event_type, action='ignored')

    def _upsert_content(self, detail: DocumentDetail, document_type: str) -> None:
        """
        Re-sync business fields. A stored contract keeps its status; only
        a new row takes its status from the provider state.
        """
        record = build_contract_record(detail, document_type)
        if self.gateway.get_by_external_id(detail.id):
            record.pop('status', None)
        self.gateway.upsert_contract(record, source_type='webhook')

    def _provision(self, external_id: str, document_type: str):
        if document_type != CONTRACT:
            logger.info(f"Document {external_id} is an {document_type}, no customer provisioning")
            return ProvisioningSkipped(reason=f"type_is_{document_type}")

        try:
            result = self.provisioner.provision_from_signed_contract(external_id)
        except Exception as e:
            logger.exception(f"Customer provisioning crashed for contract {external_id}: {e}")
            return ProvisioningFailed(error=str(e))

        if isinstance(result, ProvisioningFailed):
            logger.error(f"Customer provisioning failed for contract {external_id}: {result.error}")
        return result
