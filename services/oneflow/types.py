"""
Oneflow Sync Type Definitions

Dataclasses passed between the registry, mapper, client, gateway
and processors. Template definitions are immutable after loading.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


# Document types
CONTRACT = 'contract'
OFFER = 'offer'
DOCUMENT_TYPES = (CONTRACT, OFFER)

# Contract lifecycle statuses
STATUS_DRAFT = 'draft'
STATUS_PENDING = 'pending'
STATUS_SIGNED = 'signed'
STATUS_DECLINED = 'declined'
STATUS_ACTIVE = 'active'
STATUS_ENDED = 'ended'
STATUS_OVERDUE = 'overdue'
CONTRACT_STATUSES = (
    STATUS_DRAFT, STATUS_PENDING, STATUS_SIGNED, STATUS_DECLINED,
    STATUS_ACTIVE, STATUS_ENDED, STATUS_OVERDUE,
)


@dataclass(frozen=True)
class TemplateDefinition:
    """
    An allow-listed Oneflow template.

    Attributes:
        template_id: Oneflow template id (always a string)
        document_type: 'contract' or 'offer'
        name: Human label shown in the admin UI
    """
    template_id: str
    document_type: str
    name: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TemplateDefinition':
        return cls(
            template_id=str(data['id']).strip(),
            document_type=data['type'],
            name=data['name']
        )


@dataclass
class FieldMapping:
    """Result of mapping a document's raw data fields."""
    mapped: Dict[str, str]
    matched: List[str]
    unmatched: List[str]


@dataclass
class DocumentPage:
    """One page of documents from the Oneflow list endpoint."""
    documents: List[Dict[str, Any]]
    total_count: int
    has_more: bool


@dataclass
class DocumentDetail:
    """
    Full detail of one Oneflow document.

    metadata is the raw base response; fields is the flattened
    custom field set (custom_id -> value).
    """
    metadata: Dict[str, Any]
    fields: Dict[str, str]
    parties: List[Dict[str, Any]] = field(default_factory=list)
    products: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def id(self) -> str:
        return str(self.metadata.get('id', ''))

    @property
    def state(self) -> Optional[str]:
        return self.metadata.get('state')

    @property
    def name(self) -> str:
        return self.metadata.get('name') or ''

    @property
    def template_id(self) -> Optional[str]:
        template = self.metadata.get('template') or {}
        template_id = template.get('id')
        return str(template_id) if template_id is not None else None

    @property
    def template_name(self) -> str:
        template = self.metadata.get('template') or {}
        return template.get('name') or ''


@dataclass
class UpsertResult:
    """Outcome of ContractGateway.upsert_contract."""
    contract: Any
    created: bool


@dataclass
class ProvisioningOk:
    """Contract linked to a customer (new or existing)."""
    customer_id: str
    created: bool


@dataclass
class ProvisioningSkipped:
    """Provisioning intentionally not performed."""
    reason: str


@dataclass
class ProvisioningFailed:
    """Provisioning raised; the contract itself is already saved."""
    error: str


ProvisioningResult = Union[ProvisioningOk, ProvisioningSkipped, ProvisioningFailed]


@dataclass
class EventOutcome:
    """What happened to one event in a webhook delivery."""
    event_type: Optional[str]
    action: str
    ok: bool = True
    error: Optional[str] = None
    provisioning: Optional[ProvisioningResult] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'type': self.event_type,
            'action': self.action,
            'ok': self.ok,
        }
        if self.error:
            result['error'] = self.error
        if self.provisioning is not None:
            result['provisioning'] = describe_provisioning(self.provisioning)
        return result


@dataclass
class DeliveryResult:
    """Outcome of processing one webhook delivery."""
    contract_id: str
    skipped: bool = False
    skip_reason: Optional[str] = None
    signature_verified: bool = True
    events: List[EventOutcome] = field(default_factory=list)

    @property
    def events_processed(self) -> int:
        return len(self.events)

    @property
    def failed_events(self) -> List[EventOutcome]:
        return [e for e in self.events if not e.ok]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'contract_id': self.contract_id,
            'skipped': self.skipped,
            'skip_reason': self.skip_reason,
            'signature_verified': self.signature_verified,
            'events': [e.to_dict() for e in self.events],
        }


def describe_provisioning(result: ProvisioningResult) -> Dict[str, Any]:
    """Convert a provisioning result to a JSON-friendly dict."""
    if isinstance(result, ProvisioningOk):
        return {'status': 'ok', 'customer_id': result.customer_id, 'created': result.created}
    if isinstance(result, ProvisioningSkipped):
        return {'status': 'skipped', 'reason': result.reason}
    return {'status': 'failed', 'error': result.error}
