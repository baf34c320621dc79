"""
Field Mapper

Translates a Oneflow document's flat custom field set into the internal
contract schema. Contract and offer templates use different custom ids
for the same business data, so each document type has its own table.
The caller decides which table applies (see document_type.py).

Everything in this module is pure: no database, no HTTP.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .types import (
    CONTRACT, OFFER, FieldMapping, DocumentDetail,
    STATUS_ACTIVE, STATUS_DECLINED, STATUS_DRAFT, STATUS_OVERDUE,
    STATUS_PENDING, STATUS_SIGNED,
)

logger = logging.getLogger(__name__)

# Free-text paragraphs on contract templates. Oneflow caps a text field
# at 1024 characters, so long agreement descriptions are split across both.
PARAGRAPH_FIELDS = ('stycke-1', 'stycke-2')

# Oneflow custom_id -> contract column, contract templates
CONTRACT_FIELD_MAP = {
    'anstalld': 'begone_employee_name',
    'e-post-anstlld': 'begone_employee_email',
    'avtalslngd': 'contract_length',
    'begynnelsedag': 'start_date',
    'Kontaktperson': 'contact_person',
    'e-post-kontaktperson': 'contact_email',
    'telefonnummer-kontaktperson': 'contact_phone',
    'utforande-adress': 'contact_address',
    'foretag': 'company_name',
    'org-nr': 'organization_number',
    'stycke-1': 'stycke-1',
    'stycke-2': 'stycke-2',
}

# Oneflow custom_id -> contract column, offer templates
OFFER_FIELD_MAP = {
    'vr-kontaktperson': 'begone_employee_name',
    'vr-kontakt-mail': 'begone_employee_email',
    'utfrande-datum': 'start_date',
    'kontaktperson': 'contact_person',
    'kontaktperson-e-post': 'contact_email',
    'tel-nr': 'contact_phone',
    'utfrande-adress': 'contact_address',
    'kund': 'company_name',
    'per--org-nr': 'organization_number',
    'arbetsbeskrivning': 'agreement_text',
}

FIELD_MAPS = {
    CONTRACT: CONTRACT_FIELD_MAP,
    OFFER: OFFER_FIELD_MAP,
}

# Oneflow contract state -> internal status
PROVIDER_STATE_MAP = {
    'draft': STATUS_DRAFT,
    'pending': STATUS_PENDING,
    'published': STATUS_PENDING,
    'signed': STATUS_SIGNED,
    'declined': STATUS_DECLINED,
    'completed': STATUS_ACTIVE,
    'cancelled': STATUS_DECLINED,
    'expired': STATUS_OVERDUE,
}


def _clean(value: Any) -> Optional[str]:
    """Stringify a raw value; blank and whitespace-only become None."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def map_fields(raw_fields: Mapping[str, Any], document_type: str) -> FieldMapping:
    """
    Map raw custom fields using the table for document_type.

    Args:
        raw_fields: custom_id -> value, as returned by data_fields_to_dict
        document_type: 'contract' or 'offer'

    Returns:
        FieldMapping with the mapped fields plus the raw keys that
        did and did not match the table.
    """
    if document_type not in FIELD_MAPS:
        raise ValueError(f"Unknown document type: {document_type!r}")

    table = FIELD_MAPS[document_type]
    mapped: Dict[str, str] = {}
    matched: List[str] = []
    unmatched: List[str] = []

    for key, raw_value in raw_fields.items():
        value = _clean(raw_value)
        if value is None:
            continue

        target = table.get(key)
        if target is None:
            unmatched.append(key)
            continue

        matched.append(key)
        mapped[target] = value

    if document_type == CONTRACT:
        _merge_paragraphs(mapped)

    return FieldMapping(mapped=mapped, matched=matched, unmatched=unmatched)


def _merge_paragraphs(mapped: Dict[str, str]) -> None:
    """Join the contract paragraph fields into agreement_text, in place."""
    parts = [mapped.pop(key) for key in PARAGRAPH_FIELDS if key in mapped]
    if parts:
        mapped['agreement_text'] = '\n\n'.join(parts)


def data_fields_to_dict(data_fields: Optional[Iterable[Dict[str, Any]]]) -> Dict[str, Any]:
    """
    Flatten Oneflow's data_fields list into custom_id -> value.

    Entries without a custom_id are ignored.
    """
    result = {}
    for data_field in data_fields or []:
        custom_id = data_field.get('custom_id')
        if custom_id:
            result[custom_id] = data_field.get('value')
    return result


def map_provider_state(state: Optional[str]) -> str:
    """Translate a Oneflow contract state to an internal status."""
    status = PROVIDER_STATE_MAP.get((state or '').lower())
    if status is None:
        logger.warning(f"Unknown Oneflow state {state!r}, defaulting to '{STATUS_PENDING}'")
        return STATUS_PENDING
    return status


# =============================================================================
# PRODUCTS
# =============================================================================

def _parse_amount(value: Any) -> Decimal:
    """Parse a number that may use a decimal comma or thousands spaces."""
    if isinstance(value, dict):
        value = value.get('amount')
    if isinstance(value, bool) or value is None:
        raise InvalidOperation(f"not a number: {value!r}")
    if isinstance(value, (int, float, Decimal)):
        return Decimal(str(value))
    text = str(value).replace('\xa0', '').replace(' ', '').replace(',', '.')
    amount = Decimal(text)
    if not amount.is_finite():
        raise InvalidOperation(f"not a finite number: {value!r}")
    return amount


def _unit_price(product: Dict[str, Any]) -> Any:
    price = product.get('price_1')
    if price is not None:
        return price.get('amount') if isinstance(price, dict) else price
    unit_price = product.get('unit_price')
    if unit_price is not None:
        return unit_price
    return product.get('price')


def _quantity(product: Dict[str, Any]) -> Decimal:
    quantity = product.get('quantity')
    if quantity is None:
        quantity = product.get('qty')
    if quantity is None:
        return Decimal(1)
    try:
        return _parse_amount(quantity)
    except (InvalidOperation, ValueError, TypeError):
        logger.warning(f"Unparsable quantity on product {product.get('name')!r}, using 1")
        return Decimal(1)


def calculate_total_value(products: Optional[Iterable[Dict[str, Any]]]) -> Decimal:
    """
    Sum unit price x quantity over all products.

    A product with a missing or unparsable price contributes zero
    and is logged as a data quality issue.
    """
    total = Decimal(0)
    for product in products or []:
        try:
            price = _parse_amount(_unit_price(product))
        except (InvalidOperation, ValueError, TypeError):
            logger.warning(
                f"Data quality: unparsable price on product {product.get('name')!r}, counting as 0"
            )
            continue
        total += price * _quantity(product)
    return total


# =============================================================================
# FULL RECORD
# =============================================================================

def _first_party(detail: DocumentDetail) -> Dict[str, Any]:
    parties = detail.parties or detail.metadata.get('parties') or []
    return parties[0] if parties else {}


def build_contract_record(
    detail: DocumentDetail,
    document_type: str,
    status: Optional[str] = None
) -> Dict[str, Any]:
    """
    Build the complete contract record for a fetched document.

    Mapped fields win; the first party and its first participant fill
    in contact and company data the template fields left empty.

    Args:
        detail: Fetched document detail
        document_type: 'contract' or 'offer'
        status: Explicit status; defaults to the provider state mapping

    Returns:
        Dict of contract columns. Absent values are left out so an
        update never blanks a column the document no longer carries.
    """
    mapping = map_fields(detail.fields, document_type)
    if mapping.unmatched:
        logger.info(
            f"Document {detail.id}: {len(mapping.unmatched)} unmapped field(s): "
            f"{', '.join(sorted(mapping.unmatched))}"
        )

    fields = dict(mapping.mapped)

    party = _first_party(detail)
    participants = party.get('participants') or []
    participant = participants[0] if participants else {}

    fallbacks = {
        'contact_person': participant.get('name'),
        'contact_email': participant.get('email'),
        'company_name': party.get('name'),
        'organization_number': party.get('identification_number'),
    }
    for key, value in fallbacks.items():
        if key not in fields and _clean(value):
            fields[key] = _clean(value)

    total_value = calculate_total_value(detail.products)

    record = {
        'oneflow_contract_id': detail.id,
        'type': document_type,
        'status': status or map_provider_state(detail.state),
        'template_id': detail.template_id or 'no_template',
        'total_value': total_value if total_value > 0 else None,
        'selected_products': detail.products or None,
    }
    record.update(fields)

    return {key: value for key, value in record.items() if value is not None}
