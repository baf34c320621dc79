"""
Document Type Resolution

Decides whether a Oneflow document is a 'contract' or an 'offer'.
Resolution order, first hit wins:

    1. Template registry lookup by template id
    2. 'offert' in the document name or template name
    3. Which field table the document's custom fields belong to

Each step is a separate function so it can be tested on its own.
Steps 2 and 3 are best effort.
"""

import logging
from typing import Any, Mapping, Optional

from .field_mapper import CONTRACT_FIELD_MAP, OFFER_FIELD_MAP
from .template_registry import TemplateRegistry
from .types import CONTRACT, OFFER

logger = logging.getLogger(__name__)

OFFER_NAME_MARKER = 'offert'


def type_from_registry(template_id: Optional[str], registry: TemplateRegistry) -> Optional[str]:
    """Document type registered for the template, if any."""
    if not template_id:
        return None
    return registry.document_type_of(template_id)


def type_from_names(document_name: Optional[str], template_name: Optional[str]) -> Optional[str]:
    """
    'offer' when either name contains 'offert' (case-insensitive).

    Returns None rather than 'contract' on a miss so the next step
    still gets a chance.
    """
    for name in (document_name, template_name):
        if name and OFFER_NAME_MARKER in name.lower():
            return OFFER
    return None


def type_from_fields(raw_fields: Mapping[str, Any]) -> Optional[str]:
    """Pick the field table with more keys present. Ties are undecided."""
    keys = set(raw_fields or {})
    offer_hits = len(keys & set(OFFER_FIELD_MAP))
    contract_hits = len(keys & set(CONTRACT_FIELD_MAP))

    if offer_hits > contract_hits:
        return OFFER
    if contract_hits > offer_hits:
        return CONTRACT
    return None


def resolve_document_type(
    registry: TemplateRegistry,
    template_id: Optional[str] = None,
    document_name: Optional[str] = None,
    template_name: Optional[str] = None,
    raw_fields: Optional[Mapping[str, Any]] = None,
) -> str:
    """Run the resolution steps in order, defaulting to 'contract'."""
    document_type = type_from_registry(template_id, registry)
    if document_type:
        logger.debug(f"Template {template_id}: type '{document_type}' from registry")
        return document_type

    if not template_id:
        logger.warning(f"Data quality: document '{document_name}' has no template id")

    document_type = type_from_names(document_name, template_name)
    if document_type:
        logger.info(f"Document '{document_name}': type '{document_type}' from name")
        return document_type

    if raw_fields:
        document_type = type_from_fields(raw_fields)
        if document_type:
            logger.info(f"Document '{document_name}': type '{document_type}' from field set")
            return document_type

    logger.warning(
        f"Data quality: could not determine type of document '{document_name}', "
        f"assuming '{CONTRACT}'"
    )
    return CONTRACT
