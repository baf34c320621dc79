# routes/oneflow/webhook.py
"""
Oneflow webhook endpoint.

Configure this URL in Oneflow: https://yourdomain.com/api/oneflow/webhook

Responds 200 once the delivery has been processed, even if individual
events failed: Oneflow retries the whole delivery on any other status,
which would repeat side effects for the events that did succeed.
"""

import logging

from flask import jsonify, request

from models import OneflowSyncLog
from services import sync_log_service
from services.oneflow import (
    ConfigurationError,
    DocumentUnavailableError,
    PayloadError,
    SignatureError,
)
from services.oneflow.webhook_processor import extract_contract_id
from . import oneflow_bp
from .helpers import build_webhook_processor, error_response

logger = logging.getLogger(__name__)


@oneflow_bp.route('/webhook', methods=['POST'])
def oneflow_webhook():
    """
    Receive a Oneflow webhook delivery.

    Body: {contract: {id}, callback_id, events: [{type, ...}], signature}
    """
    payload = request.get_json(silent=True)
    contract_id = 'unknown'

    if not payload:
        logger.error("Oneflow webhook with empty or non-JSON body")
        sync_log_service.log_delivery(
            'invalid_payload', contract_id, OneflowSyncLog.ERROR,
            details={'content_type': request.content_type},
            error_message='Empty or invalid JSON body'
        )
        return error_response('Empty or invalid JSON body', 400)

    event_types = sync_log_service.describe_events(payload)
    delivery = sync_log_service.summarize_payload(payload)

    try:
        contract_id = extract_contract_id(payload)
        logger.info(f"Oneflow webhook received for document {contract_id}: {event_types}")

        result = build_webhook_processor().process(payload)

    except PayloadError as e:
        logger.error(f"Malformed Oneflow webhook: {e}")
        sync_log_service.log_delivery(
            event_types, contract_id, OneflowSyncLog.ERROR,
            details={'delivery': delivery}, error_message=str(e)
        )
        return error_response(str(e), 400)

    except SignatureError as e:
        sync_log_service.log_delivery(
            'signature_verification_failed', contract_id, OneflowSyncLog.ERROR,
            details={'delivery': delivery}, error_message=str(e)
        )
        return error_response('Invalid signature', 401)

    except DocumentUnavailableError as e:
        logger.error(f"Oneflow webhook for {contract_id} not processed: {e}")
        sync_log_service.log_delivery(
            event_types, contract_id, OneflowSyncLog.ERROR,
            details={'delivery': delivery}, error_message=str(e)
        )
        return error_response('Could not fetch contract from Oneflow', 502, contract_id=contract_id)

    except ConfigurationError as e:
        logger.error(f"Oneflow sync is not configured: {e}")
        sync_log_service.log_delivery(
            event_types, contract_id, OneflowSyncLog.ERROR,
            details={'delivery': delivery}, error_message=str(e)
        )
        return error_response('Oneflow integration is not configured', 500)

    except Exception as e:
        logger.exception(f"Oneflow webhook processing failed for {contract_id}: {e}")
        sync_log_service.log_delivery(
            'webhook_error', contract_id, OneflowSyncLog.ERROR,
            details={'delivery': delivery}, error_message=str(e)
        )
        return error_response('Internal error while processing webhook', 500)

    if not result.skipped:
        status = OneflowSyncLog.PROCESSED
    elif result.signature_verified:
        status = OneflowSyncLog.VERIFIED
    else:
        status = OneflowSyncLog.RECEIVED

    failed = result.failed_events
    error_message = '; '.join(f"{o.event_type}: {o.error}" for o in failed) or None

    sync_log_service.log_delivery(
        event_types, contract_id, status,
        details={'delivery': delivery, 'result': result.to_dict()},
        error_message=error_message
    )

    return jsonify({
        'success': True,
        'contract_id': contract_id,
        'events_processed': result.events_processed,
        'events_failed': len(failed),
        'skipped': result.skipped,
        'skip_reason': result.skip_reason
    })
