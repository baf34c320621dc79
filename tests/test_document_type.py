"""Document type resolution tests."""

from services.oneflow import resolve_document_type
from services.oneflow.document_type import type_from_fields, type_from_names
from services.oneflow.types import CONTRACT, OFFER


class TestResolutionSteps:

    def test_names(self):
        assert type_from_names('Offertförslag Kund', None) == OFFER
        assert type_from_names(None, 'OFFERTFÖRSLAG') == OFFER
        assert type_from_names('Skadedjursavtal', 'Avtal') is None

    def test_fields(self):
        assert type_from_fields({'kund': 'x', 'tel-nr': 'y'}) == OFFER
        assert type_from_fields({'foretag': 'x', 'org-nr': 'y'}) == CONTRACT
        assert type_from_fields({'kund': 'x', 'foretag': 'y'}) is None
        assert type_from_fields({}) is None


class TestResolveDocumentType:

    def test_registry_wins_over_name(self, registry):
        # Contract template whose document name mentions an offer
        document_type = resolve_document_type(
            registry, template_id='8486368', document_name='Offert omvandlad till avtal'
        )
        assert document_type == CONTRACT

    def test_registry_offer(self, registry):
        assert resolve_document_type(registry, template_id=8919037) == OFFER

    def test_name_for_unknown_template(self, registry):
        assert resolve_document_type(registry, template_id='999', document_name='Offert 12') == OFFER

    def test_fields_for_unknown_template(self, registry):
        document_type = resolve_document_type(
            registry, template_id=None, document_name='Dokument',
            raw_fields={'kund': 'x', 'per--org-nr': 'y'}
        )
        assert document_type == OFFER

    def test_defaults_to_contract(self, registry):
        assert resolve_document_type(registry) == CONTRACT
        assert resolve_document_type(
            registry, document_name='Dokument', raw_fields={'okand': 'x'}
        ) == CONTRACT
