# routes/oneflow/imports.py
"""
Import existing Oneflow documents.

GET  /api/oneflow/import-contracts?page=1&limit=50      list importable documents
POST /api/oneflow/import-contracts {action: 'list', page, limit}
POST /api/oneflow/import-contracts {action: 'import', contractIds: [...]}
"""

import logging

from flask import jsonify, request

from services.oneflow import ConfigurationError, OneflowAPIError
from . import oneflow_bp
from .helpers import (
    DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, build_importer, error_response, parse_positive_int,
)

logger = logging.getLogger(__name__)


@oneflow_bp.route('/import-contracts', methods=['GET', 'POST'])
def import_contracts():
    if request.method == 'GET':
        data = {
            'action': 'list',
            'page': request.args.get('page'),
            'limit': request.args.get('limit'),
        }
    else:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return error_response('Request body must be a JSON object', 400)

    action = data.get('action')
    page = parse_positive_int(data.get('page'), 1)
    limit = parse_positive_int(data.get('limit'), DEFAULT_PAGE_SIZE, maximum=MAX_PAGE_SIZE)

    if action not in ('list', 'import'):
        return error_response('Invalid action. Use "list" or "import"', 400)

    contract_ids = data.get('contractIds')
    if action == 'import':
        if not contract_ids or not isinstance(contract_ids, list):
            return error_response('No contract ids given for import', 400)

    try:
        importer = build_importer()

        if action == 'list':
            logger.info(f"Listing Oneflow documents for import, page {page}")
            return jsonify({'success': True, 'data': importer.list_contracts(page, limit)})

        logger.info(f"Importing {len(contract_ids)} Oneflow document(s)")
        return jsonify({'success': True, 'data': importer.import_contracts(contract_ids)})

    except OneflowAPIError as e:
        logger.error(f"Oneflow API error during {action}: {e}")
        return error_response(
            'Oneflow API error', 502,
            upstream_status=e.status_code,
            details=e.response_body
        )

    except ConfigurationError as e:
        logger.error(f"Oneflow sync is not configured: {e}")
        return error_response('Oneflow integration is not configured', 500)

    except Exception as e:
        logger.exception(f"Import contracts {action} failed: {e}")
        return error_response('Internal error while importing contracts', 500)
