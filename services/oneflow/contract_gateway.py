"""
Contract Gateway

The only write path into the contracts table. Webhook and import code
both funnel through upsert_contract / patch_status so there is exactly
one row per Oneflow document id.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional, Set

from sqlalchemy.exc import SQLAlchemyError

from models import Contract
from .exceptions import PersistenceError
from .types import CONTRACT_STATUSES, UpsertResult

logger = logging.getLogger(__name__)


class ContractGateway:
    """
    Idempotent persistence of contract records keyed by Oneflow id.

    Every write commits on success and rolls back before raising
    PersistenceError on failure.
    """

    def __init__(self, session):
        self.session = session

    def get_by_external_id(self, external_id) -> Optional[Contract]:
        return self.session.query(Contract).filter_by(
            oneflow_contract_id=str(external_id)
        ).first()

    def existing_external_ids(self) -> Set[str]:
        """All Oneflow ids already stored, fetched in one query."""
        rows = self.session.query(Contract.oneflow_contract_id).all()
        return {row[0] for row in rows}

    def upsert_contract(self, record: Dict[str, Any], source_type: str = 'webhook') -> UpsertResult:
        """
        Insert or update the contract for record['oneflow_contract_id'].

        On update every supplied synced column is overwritten and
        updated_at is bumped. source_type is only set on insert.

        Args:
            record: Contract columns, typically from build_contract_record
            source_type: 'webhook' or 'import'

        Returns:
            UpsertResult with the stored contract and whether it was created
        """
        external_id = record.get('oneflow_contract_id')
        if not external_id:
            raise PersistenceError("Contract record has no oneflow_contract_id")
        external_id = str(external_id)

        values = {key: value for key, value in record.items() if key in Contract.SYNCED_COLUMNS}

        try:
            contract = self.get_by_external_id(external_id)

            if contract:
                logger.info(f"Contract {external_id} exists, updating")
                for key, value in values.items():
                    setattr(contract, key, value)
                contract.updated_at = datetime.utcnow()
                created = False
            else:
                contract = Contract(
                    oneflow_contract_id=external_id,
                    source_type=source_type,
                    **values
                )
                self.session.add(contract)
                created = True

            self.session.commit()

        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Failed to save contract {external_id}: {e}")
            raise PersistenceError(f"Failed to save contract {external_id}: {e}", external_id)

        logger.info(f"Contract {external_id} {'created' if created else 'updated'} "
                    f"({contract.type}/{contract.status})")
        return UpsertResult(contract=contract, created=created)

    def patch_status(self, external_id, status: str) -> Optional[Contract]:
        """
        Change only the status (and updated_at) of an existing contract.

        Returns None without writing when no row exists for the id.
        """
        if status not in CONTRACT_STATUSES:
            raise ValueError(f"Unknown contract status: {status!r}")

        external_id = str(external_id)

        try:
            contract = self.get_by_external_id(external_id)
            if not contract:
                logger.warning(f"No contract stored for Oneflow id {external_id}, status '{status}' not applied")
                return None

            old_status = contract.status
            contract.status = status
            contract.updated_at = datetime.utcnow()
            self.session.commit()

        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Failed to update status of contract {external_id}: {e}")
            raise PersistenceError(f"Failed to update status of contract {external_id}: {e}", external_id)

        logger.info(f"Contract {external_id} status {old_status} -> {status}")
        return contract

    def link_customer(self, contract: Contract, customer_id: str) -> Contract:
        """Point a contract at a customer."""
        try:
            contract.customer_id = customer_id
            contract.updated_at = datetime.utcnow()
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise PersistenceError(
                f"Failed to link contract {contract.oneflow_contract_id} to customer {customer_id}: {e}",
                contract.oneflow_contract_id
            )
        return contract
