# routes/oneflow/diagnostics.py
"""
Oneflow diagnostics endpoints.

GET /api/oneflow/diagnostics?mode=health
GET /api/oneflow/diagnostics?mode=templates
GET /api/oneflow/diagnostics?mode=contract&contractId=123
"""

import logging

from flask import jsonify, request

from services import sync_log_service
from services.oneflow import (
    ConfigurationError,
    OneflowAPIError,
    map_fields,
    resolve_document_type,
)
from . import oneflow_bp
from .helpers import error_response, get_oneflow_client, get_template_registry

logger = logging.getLogger(__name__)

AVAILABLE_MODES = {
    'health': 'API health check (?mode=health)',
    'templates': 'List allowed templates (?mode=templates)',
    'contract': 'Analyze one document (?mode=contract&contractId=123)',
}


@oneflow_bp.route('/diagnostics')
def diagnostics():
    mode = request.args.get('mode')

    if mode not in AVAILABLE_MODES:
        return error_response('Invalid mode parameter', 400, available_modes=AVAILABLE_MODES)

    if mode == 'templates':
        registry = get_template_registry()
        return jsonify({
            'success': True,
            'mode': mode,
            'result': [
                {'id': t.template_id, 'type': t.document_type, 'name': t.name}
                for t in registry.all()
            ]
        })

    try:
        client = get_oneflow_client()

        if mode == 'health':
            return jsonify({'success': True, 'mode': mode, 'result': client.check_health()})

        contract_id = request.args.get('contractId')
        if not contract_id:
            return error_response('contractId parameter is required for contract mode', 400)

        return jsonify({
            'success': True,
            'mode': mode,
            'contract_id': contract_id,
            'result': _analyze_contract(client, contract_id)
        })

    except OneflowAPIError as e:
        return error_response(
            'Oneflow API error', 502,
            upstream_status=e.status_code,
            details=e.response_body
        )

    except ConfigurationError as e:
        return error_response(str(e), 500)


def _analyze_contract(client, contract_id):
    """Show how a document would be gated, typed and mapped."""
    detail = client.get_document_detail(contract_id)
    if detail is None:
        raise OneflowAPIError(f"Could not fetch Oneflow document {contract_id}")

    registry = get_template_registry()
    document_type = resolve_document_type(
        registry,
        template_id=detail.template_id,
        document_name=detail.name,
        template_name=detail.template_name,
        raw_fields=detail.fields
    )
    mapping = map_fields(detail.fields, document_type)

    return {
        'contract_info': {
            'id': detail.id,
            'name': detail.name,
            'state': detail.state,
            'template_id': detail.template_id,
            'template_name': detail.template_name,
        },
        'template_allowed': registry.is_allowed(detail.template_id),
        'document_type': document_type,
        'mapped_fields': mapping.mapped,
        'matched_fields': mapping.matched,
        'unmatched_fields': mapping.unmatched,
        'party_count': len(detail.parties),
        'product_count': len(detail.products),
        'sync_history': [
            {
                'event_type': entry.event_type,
                'status': entry.status,
                'error_message': entry.error_message,
                'created_at': entry.created_at.isoformat() if entry.created_at else None,
            }
            for entry in sync_log_service.get_contract_history(contract_id, limit=10)
        ]
    }
