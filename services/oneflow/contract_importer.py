"""
Contract Importer

Bulk counterpart of the webhook processor. Lists Oneflow documents
page by page so an operator can pick which ones to import, then
fetches, maps and saves the selected ids one at a time.
"""

import logging
from typing import Any, Dict, Iterable, List

from .contract_gateway import ContractGateway
from .document_type import resolve_document_type
from .exceptions import OneflowError
from .field_mapper import build_contract_record
from .oneflow_client import OneflowClient
from .template_registry import TemplateRegistry
from .types import CONTRACT, OFFER, STATUS_DRAFT

logger = logging.getLogger(__name__)


class ContractImporter:
    """List and import Oneflow documents."""

    def __init__(self, client: OneflowClient, gateway: ContractGateway, registry: TemplateRegistry):
        self.client = client
        self.gateway = gateway
        self.registry = registry

    def _passes_gate(self, state, template_id) -> bool:
        return (state or '').lower() != STATUS_DRAFT and self.registry.is_allowed(template_id)

    def list_contracts(self, page: int = 1, page_size: int = 50) -> Dict[str, Any]:
        """
        One page of importable documents.

        Drafts, non-allow-listed templates and documents already in
        the contracts table are filtered out.
        """
        remote = self.client.list_documents(page, page_size)
        existing_ids = self.gateway.existing_external_ids()

        contracts = []
        skipped_by_gate = 0
        already_imported = 0

        for document in remote.documents:
            document_id = str(document.get('id'))
            template = document.get('template') or {}
            template_id = template.get('id')

            if not self._passes_gate(document.get('state'), template_id):
                skipped_by_gate += 1
                continue
            if document_id in existing_ids:
                already_imported += 1
                continue

            contracts.append({
                'id': document_id,
                'name': document.get('name'),
                'state': document.get('state'),
                'template_id': str(template_id) if template_id is not None else None,
                'template_name': template.get('name'),
                'type': resolve_document_type(
                    self.registry,
                    template_id=template_id,
                    document_name=document.get('name'),
                    template_name=template.get('name')
                ),
                'created_time': document.get('created_time'),
                'updated_time': document.get('updated_time'),
            })

        logger.info(
            f"Import list page {page}: {len(contracts)} available, "
            f"{already_imported} already imported, {skipped_by_gate} filtered"
        )

        return {
            'contracts': contracts,
            'pagination': {
                'current_page': page,
                'per_page': page_size,
                'total_count': remote.total_count,
                'has_more': remote.has_more,
            },
            'summary': {
                'total_contracts': len(remote.documents),
                'skipped_by_gate': skipped_by_gate,
                'already_imported': already_imported,
                'available_for_import': len(contracts),
            },
        }

    def import_contracts(self, contract_ids: Iterable) -> Dict[str, Any]:
        """
        Import each id independently; one failure never stops the batch.

        Returns:
            Dict with per-id results (in request order) and a summary
        """
        results: List[Dict[str, Any]] = []

        for contract_id in contract_ids:
            results.append(self.import_contract(str(contract_id)))

        successful = [r for r in results if r['success']]
        summary = {
            'total_processed': len(results),
            'successful': len(successful),
            'failed': len(results) - len(successful),
            'contracts': sum(1 for r in successful if r.get('type') == CONTRACT),
            'offers': sum(1 for r in successful if r.get('type') == OFFER),
        }

        logger.info(
            f"Import finished: {summary['successful']} successful, {summary['failed']} failed"
        )
        return {'results': results, 'summary': summary}

    def import_contract(self, contract_id: str) -> Dict[str, Any]:
        """Fetch, map and save one document."""
        try:
            detail = self.client.get_document_detail(contract_id)
            if detail is None:
                return _failure(contract_id, 'Could not fetch contract details from Oneflow')

            if (detail.state or '').lower() == STATUS_DRAFT:
                return _failure(contract_id, 'Draft documents are not imported', detail.name)
            if not self.registry.is_allowed(detail.template_id):
                return _failure(
                    contract_id, f"Template {detail.template_id} is not allowed", detail.name
                )

            document_type = resolve_document_type(
                self.registry,
                template_id=detail.template_id,
                document_name=detail.name,
                template_name=detail.template_name,
                raw_fields=detail.fields
            )
            record = build_contract_record(detail, document_type)
            upsert = self.gateway.upsert_contract(record, source_type='import')

        except OneflowError as e:
            logger.error(f"Import of contract {contract_id} failed: {e}")
            return _failure(contract_id, str(e))
        except Exception as e:
            logger.exception(f"Unexpected error importing contract {contract_id}: {e}")
            return _failure(contract_id, str(e))

        return {
            'contract_id': contract_id,
            'contract_name': detail.name,
            'success': True,
            'created': upsert.created,
            'type': record['type'],
            'status': record['status'],
        }


def _failure(contract_id: str, error: str, name: str = None) -> Dict[str, Any]:
    result = {'contract_id': contract_id, 'success': False, 'error': error}
    if name:
        result['contract_name'] = name
    return result
