"""
Sync Log Service - Append-only audit trail of Oneflow webhook deliveries.

One row per inbound webhook call. Writing the log is best effort: a
failure here is logged and swallowed so it can never change the
response Oneflow receives.
"""

import logging

from flask import has_request_context, request
from sqlalchemy.exc import SQLAlchemyError

from models import db, OneflowSyncLog

logger = logging.getLogger(__name__)


def describe_sender():
    """Sender address (first X-Forwarded-For hop) and user agent of the delivery."""
    if not has_request_context():
        return {}

    forwarded = request.headers.get('X-Forwarded-For', '')
    sender = {'ip_address': forwarded.split(',')[0].strip() or request.remote_addr}
    if request.user_agent.string:
        sender['user_agent'] = request.user_agent.string[:500]
    return {key: value for key, value in sender.items() if value}


def log_delivery(event_type, oneflow_contract_id, status, details=None, error_message=None):
    """
    Append one sync log row.

    Args:
        event_type: Comma-joined event types, or a marker such as
            'signature_verification_failed'
        oneflow_contract_id: Oneflow document id ('unknown' if unparsable)
        status: One of OneflowSyncLog.RECEIVED / VERIFIED / PROCESSED / ERROR
        details: JSON-serializable context
        error_message: Optional error text

    Returns:
        The created OneflowSyncLog, or None if the write failed
    """
    entry_details = dict(describe_sender(), **(details or {}))

    try:
        # A failed contract write may have left the session unusable
        db.session.rollback()

        entry = OneflowSyncLog(
            event_type=(event_type or 'unknown')[:500],
            oneflow_contract_id=str(oneflow_contract_id) if oneflow_contract_id is not None else None,
            status=status,
            details=entry_details,
            error_message=error_message
        )
        db.session.add(entry)
        db.session.commit()
        return entry

    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Could not write sync log for contract {oneflow_contract_id}: {e}")
        return None


def describe_events(payload):
    """Comma-joined event types of a delivery, for the event_type column."""
    events = payload.get('events') if isinstance(payload, dict) else None
    if not isinstance(events, list) or not events:
        return 'no_events'
    return ', '.join(
        str(e.get('type')) if isinstance(e, dict) else 'malformed'
        for e in events
    )


def summarize_payload(payload):
    """Keep the parts of a delivery worth replaying; drop the signature."""
    if not isinstance(payload, dict):
        return {'raw_type': type(payload).__name__}
    return {
        'callback_id': payload.get('callback_id'),
        'contract': payload.get('contract'),
        'events': payload.get('events'),
    }


def get_contract_history(oneflow_contract_id, limit=50):
    """Most recent sync log rows for one Oneflow document."""
    return OneflowSyncLog.for_contract(oneflow_contract_id, limit=limit)
