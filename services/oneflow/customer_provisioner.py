"""
Customer Provisioner

Creates or links a customer when a contract-type document is signed.
Offers never create customers.

Existing customers are matched by organization number first and by
contact email second. A match is only linked; its fields are never
overwritten.

provision_from_signed_contract never raises. Callers get a result
object (ok / skipped / failed) to log, because the signed contract is
already saved by the time this runs.
"""

import logging
import re
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from models import Contract, Customer
from .contract_gateway import ContractGateway
from .exceptions import OneflowError
from .types import (
    CONTRACT, ProvisioningFailed, ProvisioningOk, ProvisioningResult, ProvisioningSkipped,
)

logger = logging.getLogger(__name__)

# Length of contract_description on new customers
DESCRIPTION_LIMIT = 500

LEADING_NUMBER = re.compile(r'\s*(\d+)')


class CustomerProvisioner:
    """Customer creation and linking for signed contracts."""

    def __init__(self, session, gateway: ContractGateway):
        self.session = session
        self.gateway = gateway

    def provision_from_signed_contract(self, external_id) -> ProvisioningResult:
        """
        Link the signed contract to a customer, creating one if needed.

        Args:
            external_id: Oneflow document id of the signed contract

        Returns:
            ProvisioningOk, ProvisioningSkipped or ProvisioningFailed
        """
        try:
            return self._provision(str(external_id))
        except (OneflowError, SQLAlchemyError) as e:
            self.session.rollback()
            logger.error(f"Customer provisioning failed for contract {external_id}: {e}")
            return ProvisioningFailed(error=str(e))

    def _provision(self, external_id: str) -> ProvisioningResult:
        contract = self.gateway.get_by_external_id(external_id)

        if not contract:
            return self._skip(external_id, 'contract_not_found')
        if contract.type != CONTRACT:
            return self._skip(external_id, f"type_is_{contract.type}")
        if contract.customer_id:
            return self._skip(external_id, 'already_linked')
        if not contract.contact_email and not contract.contact_person:
            return self._skip(external_id, 'missing_contact_information')

        existing = self.find_existing_customer(contract)
        if existing:
            self.gateway.link_customer(contract, existing.id)
            logger.info(f"Contract {external_id} linked to existing customer {existing.id}")
            return ProvisioningOk(customer_id=existing.id, created=False)

        customer = self._create_customer(contract)
        self.gateway.link_customer(contract, customer.id)
        logger.info(f"Created customer {customer.id} ({customer.company_name}) from contract {external_id}")
        return ProvisioningOk(customer_id=customer.id, created=True)

    def _skip(self, external_id: str, reason: str) -> ProvisioningSkipped:
        logger.info(f"Customer provisioning skipped for contract {external_id}: {reason}")
        return ProvisioningSkipped(reason=reason)

    def find_existing_customer(self, contract: Contract) -> Optional[Customer]:
        """Match by org number, then (only without an org match) by email."""
        if contract.organization_number:
            customer = self.session.query(Customer).filter_by(
                org_number=contract.organization_number
            ).first()
            if customer:
                return customer

        if contract.contact_email:
            return self.session.query(Customer).filter_by(
                email=contract.contact_email
            ).first()

        return None

    def _create_customer(self, contract: Contract) -> Customer:
        customer = Customer(
            company_name=contract.company_name or contract.contact_person or contract.contact_email,
            org_number=contract.organization_number,
            contact_person=contract.contact_person,
            email=contract.contact_email,
            phone=contract.contact_phone,
            address=contract.contact_address,
            contract_start_date=contract.start_date,
            contract_length_months=_parse_months(contract.contract_length),
            total_contract_value=contract.total_value,
            contract_description=(contract.agreement_text or '')[:DESCRIPTION_LIMIT] or None,
            assigned_account_manager=contract.begone_employee_name,
            business_type='Avtalskund',
            contract_status='active',
            is_active=True
        )
        self.session.add(customer)
        self.session.flush()
        return customer


def _parse_months(value: Optional[str]) -> Optional[int]:
    """Leading integer: '12 månader' -> 12, '24 mån, 3 mån uppsägning' -> 24."""
    if not value:
        return None
    match = LEADING_NUMBER.match(str(value))
    return int(match.group(1)) if match else None
