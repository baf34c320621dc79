"""Customer provisioning tests for signed contracts."""

from models import Contract, Customer
from services.oneflow import ProvisioningOk, ProvisioningSkipped
from services.oneflow.customer_provisioner import _parse_months


def save_contract(gateway, external_id='1001', **values):
    data = {
        'oneflow_contract_id': external_id,
        'type': 'contract',
        'status': 'signed',
        'company_name': 'Kund AB',
        'organization_number': '556677-8899',
        'contact_person': 'Anna Kund',
        'contact_email': 'anna@kund.se',
        'contract_length': '24 månader',
        'begone_employee_name': 'Erik Tekniker',
    }
    data.update(values)
    return gateway.upsert_contract(data).contract


class TestProvisioning:

    def test_creates_and_links_customer(self, db, gateway, provisioner):
        save_contract(gateway, agreement_text='x' * 800)

        result = provisioner.provision_from_signed_contract('1001')

        assert isinstance(result, ProvisioningOk)
        assert result.created is True
        customer = db.session.get(Customer, result.customer_id)
        assert customer.company_name == 'Kund AB'
        assert customer.business_type == 'Avtalskund'
        assert customer.contract_length_months == 24
        assert customer.assigned_account_manager == 'Erik Tekniker'
        assert len(customer.contract_description) == 500
        assert gateway.get_by_external_id('1001').customer_id == customer.id

    def test_second_call_is_skipped(self, gateway, provisioner):
        save_contract(gateway)
        provisioner.provision_from_signed_contract('1001')

        result = provisioner.provision_from_signed_contract('1001')

        assert result == ProvisioningSkipped(reason='already_linked')
        assert Customer.query.count() == 1

    def test_org_number_match_wins_over_email(self, db, gateway, provisioner):
        by_org = Customer(company_name='Org match', org_number='556677-8899')
        by_email = Customer(company_name='Email match', email='anna@kund.se')
        db.session.add_all([by_org, by_email])
        db.session.commit()
        save_contract(gateway)

        result = provisioner.provision_from_signed_contract('1001')

        assert result == ProvisioningOk(customer_id=by_org.id, created=False)
        assert Customer.query.count() == 2

    def test_email_fallback(self, db, gateway, provisioner):
        existing = Customer(company_name='Email match', email='anna@kund.se')
        db.session.add(existing)
        db.session.commit()
        save_contract(gateway, organization_number='000000-0000')

        result = provisioner.provision_from_signed_contract('1001')

        assert result == ProvisioningOk(customer_id=existing.id, created=False)
        # Existing customer data is never overwritten
        assert db.session.get(Customer, existing.id).company_name == 'Email match'

    def test_offer_skipped(self, gateway, provisioner):
        save_contract(gateway, type='offer')
        result = provisioner.provision_from_signed_contract('1001')
        assert result == ProvisioningSkipped(reason='type_is_offer')
        assert Customer.query.count() == 0

    def test_missing_contract(self, provisioner):
        result = provisioner.provision_from_signed_contract('404')
        assert result == ProvisioningSkipped(reason='contract_not_found')

    def test_missing_contact_information(self, db, gateway, provisioner):
        contract = save_contract(gateway)
        contract.contact_email = None
        contract.contact_person = None
        db.session.commit()

        result = provisioner.provision_from_signed_contract('1001')
        assert result == ProvisioningSkipped(reason='missing_contact_information')

    def test_falls_back_to_contact_person_as_company_name(self, db, gateway, provisioner):
        contract = save_contract(gateway, organization_number='1', contact_email='ny@kund.se')
        contract.company_name = None
        db.session.commit()

        result = provisioner.provision_from_signed_contract('1001')
        assert db.session.get(Customer, result.customer_id).company_name == 'Anna Kund'

    def test_email_only_contract_creates_customer(self, db, gateway, provisioner):
        gateway.upsert_contract({
            'oneflow_contract_id': '1001',
            'type': 'contract',
            'status': 'signed',
            'contact_email': 'solo@kund.se',
        })

        result = provisioner.provision_from_signed_contract('1001')

        assert isinstance(result, ProvisioningOk)
        assert result.created is True
        customer = db.session.get(Customer, result.customer_id)
        assert customer.company_name == 'solo@kund.se'
        assert gateway.get_by_external_id('1001').customer_id == customer.id


def test_parse_months():
    assert _parse_months('12') == 12
    assert _parse_months('36 månader') == 36
    assert _parse_months('24 mån, 3 mån uppsägning') == 24
    assert _parse_months(' 6 mån') == 6
    assert _parse_months('ca 12 mån') is None
    assert _parse_months('tillsvidare') is None
    assert _parse_months(None) is None
