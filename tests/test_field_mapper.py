"""
Field mapper tests: custom field tables, product totals and the
full contract record.
"""

from decimal import Decimal

import pytest

from conftest import CONTRACT_FIELDS, build_detail, build_offer_detail
from services.oneflow import build_contract_record, calculate_total_value, map_fields
from services.oneflow.field_mapper import data_fields_to_dict, map_provider_state
from services.oneflow.types import CONTRACT, OFFER


class TestMapFields:

    def test_contract_fields(self):
        mapping = map_fields(CONTRACT_FIELDS, CONTRACT)
        assert mapping.mapped['begone_employee_name'] == 'Erik Tekniker'
        assert mapping.mapped['contact_email'] == 'anna@kund.se'
        assert mapping.mapped['organization_number'] == '556677-8899'
        assert mapping.unmatched == []

    def test_paragraphs_merged_into_agreement_text(self):
        mapping = map_fields({'stycke-1': 'A', 'stycke-2': 'B'}, CONTRACT)
        assert mapping.mapped == {'agreement_text': 'A\n\nB'}

    def test_single_paragraph(self):
        mapping = map_fields({'stycke-2': 'Bara två'}, CONTRACT)
        assert mapping.mapped == {'agreement_text': 'Bara två'}

    def test_blank_values_dropped(self):
        mapping = map_fields({'foretag': '  ', 'org-nr': None, 'anstalld': ' Erik '}, CONTRACT)
        assert mapping.mapped == {'begone_employee_name': 'Erik'}

    def test_unmatched_keys_reported(self):
        mapping = map_fields({'foretag': 'Kund AB', 'okand-nyckel': 'x'}, CONTRACT)
        assert mapping.matched == ['foretag']
        assert mapping.unmatched == ['okand-nyckel']

    def test_offer_table(self):
        mapping = map_fields({'kund': 'Per', 'arbetsbeskrivning': 'Sanering', 'foretag': 'X'}, OFFER)
        assert mapping.mapped == {'company_name': 'Per', 'agreement_text': 'Sanering'}
        assert mapping.unmatched == ['foretag']

    def test_unknown_document_type(self):
        with pytest.raises(ValueError):
            map_fields({}, 'invoice')


class TestHelpers:

    def test_data_fields_to_dict(self):
        fields = data_fields_to_dict([
            {'custom_id': 'foretag', 'value': 'Kund AB'},
            {'custom_id': None, 'value': 'ignored'},
            {'value': 'also ignored'},
        ])
        assert fields == {'foretag': 'Kund AB'}

    @pytest.mark.parametrize('state,status', [
        ('pending', 'pending'),
        ('published', 'pending'),
        ('signed', 'signed'),
        ('completed', 'active'),
        ('cancelled', 'declined'),
        ('expired', 'overdue'),
        ('SIGNED', 'signed'),
        ('something_new', 'pending'),
        (None, 'pending'),
    ])
    def test_map_provider_state(self, state, status):
        assert map_provider_state(state) == status


class TestTotalValue:

    def test_price_times_quantity(self):
        products = [
            {'name': 'Fälla', 'price_1': {'amount': '10'}, 'quantity': 2},
            {'name': 'Besök', 'price_1': {'amount': '5,00'}},
        ]
        assert calculate_total_value(products) == Decimal('25')

    def test_price_and_qty_keys(self):
        products = [{'price': 10, 'qty': 2}, {'price': 5, 'qty': 1}]
        assert calculate_total_value(products) == Decimal('25')

    def test_amount_objects(self):
        products = [{'unit_price': {'amount': '12.50'}, 'quantity': {'amount': 2}}]
        assert calculate_total_value(products) == Decimal('25')

    def test_alternative_price_keys(self):
        products = [
            {'name': 'A', 'unit_price': '1 000', 'qty': '2'},
            {'name': 'B', 'price': 50},
        ]
        assert calculate_total_value(products) == Decimal('2050')

    def test_unparsable_price_counts_as_zero(self):
        products = [
            {'name': 'Trasig', 'price_1': {'amount': 'gratis'}},
            {'name': 'Saknas'},
            {'name': 'OK', 'price_1': {'amount': '100'}, 'quantity': 1},
        ]
        assert calculate_total_value(products) == Decimal('100')

    def test_no_products(self):
        assert calculate_total_value(None) == Decimal(0)
        assert calculate_total_value([]) == Decimal(0)


class TestBuildContractRecord:

    def test_contract_record(self):
        detail = build_detail(products=[{'name': 'Fälla', 'price_1': {'amount': '250'}, 'quantity': 4}])
        record = build_contract_record(detail, CONTRACT)

        assert record['oneflow_contract_id'] == '1001'
        assert record['type'] == CONTRACT
        assert record['status'] == 'pending'
        assert record['template_id'] == '8486368'
        assert record['agreement_text'] == 'Del ett\n\nDel två'
        assert record['total_value'] == Decimal('1000')
        assert 'stycke-1' not in record

    def test_explicit_status_wins(self):
        record = build_contract_record(build_detail(state='pending'), CONTRACT, status='signed')
        assert record['status'] == 'signed'

    def test_party_fallbacks(self):
        parties = [{
            'name': 'Part AB',
            'identification_number': '111111-2222',
            'participants': [{'name': 'Pia Part', 'email': 'pia@part.se'}],
        }]
        detail = build_detail(fields={'foretag': 'Fält AB'}, parties=parties)
        record = build_contract_record(detail, CONTRACT)

        # Mapped field wins, party fills the gaps
        assert record['company_name'] == 'Fält AB'
        assert record['organization_number'] == '111111-2222'
        assert record['contact_person'] == 'Pia Part'
        assert record['contact_email'] == 'pia@part.se'

    def test_absent_values_left_out(self):
        detail = build_detail(template_id=None, fields={})
        record = build_contract_record(detail, CONTRACT)

        assert record['template_id'] == 'no_template'
        assert 'total_value' not in record
        assert 'selected_products' not in record
        assert 'company_name' not in record

    def test_offer_record(self):
        record = build_contract_record(build_offer_detail(), OFFER)
        assert record['type'] == OFFER
        assert record['agreement_text'] == 'Sanering av vind'
        assert record['contact_email'] == 'per@privat.se'
