# apps/clients/tests.py
"""
Clients app tests - variant resolution, projection, uniqueness guard,
client service and API endpoints
"""
import json

from django.contrib.auth import get_user_model
from django.test import SimpleTestCase, TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase, APIClient

from apps.businesses.models import Business
from apps.core.exceptions import NotFound, ReorderMismatch, UniquenessConflict
from apps.clients.guard import UniquenessGuard
from apps.clients.models import Client
from apps.clients.projection import (
    Address, CompanyView, IndividualView, apply_to_record, compress, expand, strip_surname,
)
from apps.clients.repository import ClientRepository
from apps.clients.serializers import serialize_view
from apps.clients.services import ClientService
from apps.clients.variants import read_side_channel, resolve_variant

User = get_user_model()


FISCAL = {
    'street': 'Calle Mayor 1',
    'city': 'Madrid',
    'postal_code': '28001',
    'province': 'Madrid',
    'country': 'Spain',
}

COMMERCIAL = {
    'street': 'Gran Via 20',
    'city': 'Madrid',
    'postal_code': '28013',
    'province': 'Madrid',
    'country': 'Spain',
}


def company_payload(**overrides):
    payload = {
        'variant': 'company',
        'display_name': 'Acme',
        'legal_name': 'Acme SL',
        'tax_id': 'B123',
        'vat_id': 'ESB123',
        'email': 'hello@acme.es',
        'fiscal_address': dict(FISCAL),
    }
    payload.update(overrides)
    return payload


def individual_payload(**overrides):
    payload = {
        'variant': 'individual',
        'given_name': 'Maria',
        'surname': 'Lopez Garcia',
        'national_id': '12345678Z',
        'address': {'street': 'Calle Sol 3', 'city': 'Sevilla'},
    }
    payload.update(overrides)
    return payload


class VariantResolverTests(SimpleTestCase):
    """Test resolve_variant priority order"""

    def test_explicit_hint_wins(self):
        """Test the caller's hint beats every other signal"""
        record = {'metadata': json.dumps({'variant': 'company', 'legal_name': 'Acme SL'})}

        self.assertEqual(resolve_variant(record, hint='individual'), 'individual')

    def test_record_variant_attribute(self):
        """Test a variant already carried by the record is used"""
        view = IndividualView(display_name='Ana')

        self.assertEqual(resolve_variant(view), 'individual')

    def test_side_channel_variant_key(self):
        """Test the variant stored in the side channel"""
        record = Client(metadata=json.dumps({'variant': 'individual'}))

        self.assertEqual(resolve_variant(record), 'individual')

    def test_unknown_variant_values_fall_through(self):
        """Test unsupported variant values are ignored"""
        record = Client(metadata=json.dumps({'variant': 'empresa', 'surname': 'Ruiz'}))

        self.assertEqual(resolve_variant(record, hint='robot'), 'individual')

    def test_company_only_key_classifies_as_company(self):
        """Test legal_name in an untagged side channel means company"""
        record = Client(metadata=json.dumps({'legal_name': 'Acme SL', 'surname': 'Ruiz'}))

        self.assertEqual(resolve_variant(record), 'company')

    def test_individual_only_key_classifies_as_individual(self):
        """Test surname in an untagged side channel means individual"""
        record = Client(metadata=json.dumps({'surname': 'Ruiz'}))

        self.assertEqual(resolve_variant(record), 'individual')

    def test_blank_values_are_not_signals(self):
        """Test empty strings and empty addresses do not count as present"""
        record = Client(metadata=json.dumps({'legal_name': '  ', 'fiscal_address': {'city': ''}}))

        self.assertEqual(resolve_variant(record), 'company')
        record = Client(metadata=json.dumps({'legal_name': '', 'surname': 'Ruiz'}))
        self.assertEqual(resolve_variant(record), 'individual')

    def test_default_is_company(self):
        """Test a record with no hints resolves to company"""
        self.assertEqual(resolve_variant(Client(display_name='Legacy')), 'company')
        self.assertEqual(resolve_variant({}), 'company')

    def test_malformed_side_channel_resolves_to_default(self):
        """Test invalid JSON never raises"""
        self.assertEqual(resolve_variant(Client(metadata='{not json')), 'company')

    def test_read_side_channel_policy(self):
        """Test every malformed side channel reads as an empty mapping"""
        self.assertEqual(read_side_channel(None), {})
        self.assertEqual(read_side_channel(''), {})
        self.assertEqual(read_side_channel('{not json'), {})
        self.assertEqual(read_side_channel('[1, 2]'), {})
        self.assertEqual(read_side_channel('"text"'), {})
        self.assertEqual(read_side_channel('{"variant": "company"}'), {'variant': 'company'})


class CompressTests(SimpleTestCase):
    """Test compress (payload -> columns + side channel)"""

    def test_company_scenario(self):
        """Test the legal identifier and side channel of a new company"""
        compressed = compress({
            'variant': 'company',
            'legal_name': 'Acme SL',
            'tax_id': 'B123',
            'display_name': 'Acme',
        })

        self.assertEqual(compressed.fields['legal_identifier'], 'B123')
        self.assertEqual(compressed.fields['display_name'], 'Acme')
        self.assertEqual(json.loads(compressed.metadata), {'variant': 'company', 'legal_name': 'Acme SL'})

    def test_company_address_falls_back_to_fiscal(self):
        """Test fiscal address fills the address columns when no commercial address is given"""
        compressed = compress(company_payload())
        side_channel = json.loads(compressed.metadata)

        for part, value in FISCAL.items():
            self.assertEqual(compressed.fields[part], value)
        self.assertEqual(side_channel['fiscal_address'], FISCAL)
        self.assertNotIn('commercial_address', side_channel)

    def test_company_distinct_commercial_address(self):
        """Test a different commercial address goes to the columns and the side channel"""
        compressed = compress(company_payload(commercial_address=dict(COMMERCIAL)))
        side_channel = json.loads(compressed.metadata)

        self.assertEqual(compressed.fields['street'], 'Gran Via 20')
        self.assertEqual(side_channel['commercial_address'], COMMERCIAL)
        self.assertEqual(side_channel['fiscal_address'], FISCAL)

    def test_company_commercial_equal_to_fiscal_not_stored(self):
        """Test an identical commercial address is not duplicated in the side channel"""
        compressed = compress(company_payload(commercial_address=dict(FISCAL)))

        self.assertNotIn('commercial_address', json.loads(compressed.metadata))
        self.assertEqual(compressed.fields['street'], FISCAL['street'])

    def test_same_as_fiscal_toggle_ignores_commercial(self):
        """Test the "use same address" toggle discards the commercial address"""
        compressed = compress(company_payload(commercial_address=dict(COMMERCIAL), same_as_fiscal=True))

        self.assertNotIn('commercial_address', json.loads(compressed.metadata))
        self.assertEqual(compressed.fields['street'], FISCAL['street'])

    def test_company_display_name_defaults_to_legal_name(self):
        """Test the legal name is used when no display name is given"""
        compressed = compress(company_payload(display_name=''))

        self.assertEqual(compressed.fields['display_name'], 'Acme SL')

    def test_individual(self):
        """Test individual compression"""
        compressed = compress(individual_payload())

        self.assertEqual(compressed.fields['display_name'], 'Maria Lopez Garcia')
        self.assertEqual(compressed.fields['legal_identifier'], '12345678Z')
        self.assertEqual(compressed.fields['street'], 'Calle Sol 3')
        self.assertIsNone(compressed.fields['postal_code'])
        self.assertEqual(json.loads(compressed.metadata), {
            'variant': 'individual',
            'given_name': 'Maria',
            'surname': 'Lopez Garcia',
        })

    def test_individual_without_surname(self):
        """Test the display name is trimmed when the surname is missing"""
        compressed = compress(individual_payload(given_name=' Maria ', surname=None))

        self.assertEqual(compressed.fields['display_name'], 'Maria')
        self.assertEqual(json.loads(compressed.metadata), {'variant': 'individual', 'given_name': 'Maria'})

    def test_variant_tag_kept_without_other_keys(self):
        """Test the variant is stored even when nothing else is"""
        compressed = compress({'variant': 'company', 'display_name': 'Bare'})

        self.assertEqual(json.loads(compressed.metadata), {'variant': 'company'})

    def test_legacy_payload_has_no_side_channel(self):
        """Test payloads without a variant store no side channel"""
        compressed = compress({'display_name': 'Old Client', 'legal_identifier': 'X1'})

        self.assertIsNone(compressed.metadata)
        self.assertEqual(compressed.fields['legal_identifier'], 'X1')
        self.assertEqual(compressed.fields['category'], 'client')

    def test_blank_identifiers_become_null(self):
        """Test blank identifiers are stored as NULL"""
        compressed = compress(company_payload(tax_id='  ', vat_id=''))

        self.assertIsNone(compressed.fields['legal_identifier'])
        self.assertIsNone(compressed.fields['vat_id'])

    def test_compress_is_deterministic(self):
        """Test identical payloads give byte-identical output"""
        payload = company_payload(commercial_address=dict(COMMERCIAL))
        reordered = dict(reversed(list(payload.items())))

        first = compress(payload)
        second = compress(payload)

        self.assertEqual(first, second)
        self.assertEqual(first.metadata, compress(reordered).metadata)


class ExpandTests(SimpleTestCase):
    """Test expand (stored row -> variant view)"""

    def roundtrip(self, payload):
        return expand(apply_to_record(Client(business_id=1), compress(payload)))

    def test_company_round_trip(self):
        """Test expand(compress(c)) gives back the retained company fields"""
        view = self.roundtrip(company_payload(commercial_address=dict(COMMERCIAL)))

        self.assertIsInstance(view, CompanyView)
        self.assertEqual(view.variant, 'company')
        self.assertEqual(view.tax_id, 'B123')
        self.assertEqual(view.legal_name, 'Acme SL')
        self.assertEqual(view.fiscal_address, Address(**FISCAL))
        self.assertEqual(view.commercial_address, Address(**COMMERCIAL))
        self.assertFalse(view.same_as_fiscal)

    def test_company_round_trip_with_address_fallback(self):
        """Test the commercial address reads back as the fiscal one"""
        view = self.roundtrip(company_payload())

        self.assertEqual(view.commercial_address, Address(**FISCAL))
        self.assertTrue(view.same_as_fiscal)

    def test_company_scenario(self):
        """Test the view of a freshly compressed company"""
        view = self.roundtrip({'variant': 'company', 'legal_name': 'Acme SL', 'tax_id': 'B123', 'display_name': 'Acme'})

        self.assertEqual(view.tax_id, 'B123')
        self.assertEqual(view.legal_name, 'Acme SL')
        self.assertEqual(view.display_name, 'Acme')
        self.assertIsNone(view.commercial_address)

    def test_individual_round_trip(self):
        """Test individual fields survive the round trip"""
        view = self.roundtrip(individual_payload())

        self.assertIsInstance(view, IndividualView)
        self.assertEqual(view.given_name, 'Maria')
        self.assertEqual(view.surname, 'Lopez Garcia')
        self.assertEqual(view.national_id, '12345678Z')
        self.assertEqual(view.address, Address(street='Calle Sol 3', city='Sevilla'))

    def test_surname_stripping(self):
        """Test the given name is recovered from the display name"""
        record = Client(
            display_name='Maria Lopez Garcia',
            metadata=json.dumps({'variant': 'individual', 'surname': 'Lopez Garcia'}),
        )

        self.assertEqual(expand(record).given_name, 'Maria')

    def test_given_name_falls_back_to_display_name(self):
        """Test a display name that does not end with the surname is kept whole"""
        record = Client(
            display_name='Maria Perez',
            metadata=json.dumps({'variant': 'individual', 'surname': 'Lopez'}),
        )

        self.assertEqual(expand(record).given_name, 'Maria Perez')

    def test_strip_surname_edge_cases(self):
        """Test strip_surname on empty and whole-name surnames"""
        self.assertEqual(strip_surname('Lopez', 'Lopez'), 'Lopez')
        self.assertEqual(strip_surname(' Ana Ruiz ', ' Ruiz'), 'Ana')
        self.assertEqual(strip_surname('Ana', None), 'Ana')

    def test_malformed_side_channel(self):
        """Test a corrupt side channel expands to the base columns"""
        record = Client(
            business_id=1,
            display_name='Broken Ltd',
            legal_identifier='B999',
            email='info@broken.es',
            city='Bilbao',
            metadata='{not json',
        )

        view = expand(record)

        self.assertIsInstance(view, CompanyView)
        self.assertEqual(view.display_name, 'Broken Ltd')
        self.assertEqual(view.legal_identifier, 'B999')
        self.assertEqual(view.email, 'info@broken.es')
        self.assertEqual(view.commercial_address, Address(city='Bilbao'))
        self.assertIsNone(view.legal_name)
        self.assertEqual(view.extra, {})

    def test_hint_overrides_stored_variant(self):
        """Test expand honours an explicit variant hint"""
        record = Client(display_name='Ana Ruiz', metadata=json.dumps({'variant': 'company'}))

        self.assertIsInstance(expand(record, hint='individual'), IndividualView)

    def test_side_channel_wins_on_conflict(self):
        """Test side channel keys override base columns, except identity columns"""
        record = Client(
            business_id=1,
            display_name='Acme',
            email='old@acme.es',
            metadata=json.dumps({'variant': 'company', 'email': 'new@acme.es', 'business_id': 2, 'rating': 5}),
        )

        view = expand(record)

        self.assertEqual(view.email, 'new@acme.es')
        self.assertEqual(view.business_id, 1)
        self.assertEqual(view.extra, {'rating': 5})

    def test_non_string_surname_is_ignored(self):
        """Test a numeric surname does not break given name recovery"""
        record = Client(display_name='Ana Ruiz', metadata='{"variant": "individual", "surname": 7}')

        view = expand(record)

        self.assertIsNone(view.surname)
        self.assertEqual(view.given_name, 'Ana Ruiz')

    def test_non_string_display_name_keeps_column(self):
        """Test a list display name in the side channel leaves the column value"""
        record = Client(display_name='Ana Ruiz', metadata='{"variant": "individual", "display_name": ["x"]}')

        view = expand(record)

        self.assertEqual(view.display_name, 'Ana Ruiz')
        self.assertEqual(view.given_name, 'Ana Ruiz')

    def test_mistyped_company_fields_are_ignored(self):
        """Test wrongly typed names, addresses and positions fall back to the columns"""
        record = Client(
            business_id=1,
            display_name='Acme',
            legal_identifier='B123',
            city='Madrid',
            sort_position=2,
            metadata=json.dumps({
                'variant': 'company',
                'legal_name': {'value': 'Acme SL'},
                'fiscal_address': 'Calle Mayor 1',
                'commercial_address': ['Gran Via 20'],
                'sort_position': 'first',
                'email': 42,
            }),
        )

        view = expand(record)
        data = serialize_view(view)

        self.assertIsNone(view.legal_name)
        self.assertIsNone(view.fiscal_address)
        self.assertEqual(view.commercial_address, Address(city='Madrid'))
        self.assertTrue(view.same_as_fiscal)
        self.assertEqual(view.sort_position, 2)
        self.assertIsNone(view.email)
        self.assertEqual(data['sort_position'], 2)
        self.assertEqual(data['tax_id'], 'B123')

    def test_boolean_sort_position_is_ignored(self):
        """Test booleans are not accepted as positions"""
        record = Client(display_name='Acme', sort_position=5, metadata='{"variant": "company", "sort_position": true}')

        self.assertEqual(expand(record).sort_position, 5)

    def test_non_string_address_parts_are_dropped(self):
        """Test address parts that are not strings are left empty"""
        record = Client(
            display_name='Acme',
            metadata=json.dumps({'variant': 'company', 'fiscal_address': {'street': 'Calle Mayor 1', 'city': 5}}),
        )

        self.assertEqual(expand(record).fiscal_address, Address(street='Calle Mayor 1'))


class UniquenessGuardTests(TestCase):
    """Test the uniqueness guard against the database"""

    def setUp(self):
        self.business = Business.objects.create(name='Tenant A')
        self.other_business = Business.objects.create(name='Tenant B')
        self.existing = Client.objects.create(
            business=self.business,
            display_name='Acme',
            legal_identifier='B123',
            vat_id='ESB123',
        )
        self.guard = UniquenessGuard(ClientRepository())

    def test_duplicate_legal_identifier(self):
        """Test a duplicate legal identifier is a conflict, whatever the case"""
        with self.assertRaises(UniquenessConflict) as context:
            self.guard.check_unique(self.business.pk, 'legal_identifier', 'b123')

        self.assertEqual(context.exception.field, 'legal_identifier')
        self.assertEqual(context.exception.status_code, 409)

    def test_duplicate_vat_id(self):
        """Test VAT ids are checked independently"""
        with self.assertRaises(UniquenessConflict) as context:
            self.guard.check_all(self.business.pk, {'legal_identifier': 'NEW', 'vat_id': 'ESB123'})

        self.assertEqual(context.exception.field, 'vat_id')

    def test_other_tenant_is_not_a_conflict(self):
        """Test uniqueness is scoped to the business"""
        self.guard.check_all(self.other_business.pk, {'legal_identifier': 'B123', 'vat_id': 'ESB123'})

    def test_excluded_record_is_ignored(self):
        """Test a record does not conflict with itself on update"""
        self.guard.check_all(
            self.business.pk,
            {'legal_identifier': 'B123', 'vat_id': 'ESB123'},
            exclude_id=self.existing.pk
        )

    def test_empty_values_are_skipped(self):
        """Test null and blank values never conflict"""
        Client.objects.create(business=self.business, display_name='No ids')

        self.assertIsNone(self.guard.find_conflict(self.business.pk, 'legal_identifier', None))
        self.assertIsNone(self.guard.find_conflict(self.business.pk, 'vat_id', '  '))

    def test_unknown_field_rejected(self):
        """Test only the two identifier fields can be checked"""
        with self.assertRaises(ValueError):
            self.guard.find_conflict(self.business.pk, 'email', 'x@y.es')

    def test_guard_uses_injected_repository(self):
        """Test the guard only talks to the repository it was given"""
        class StubRepository:
            def __init__(self):
                self.calls = []

            def value_taken(self, business_id, field, value, exclude_id=None):
                self.calls.append((business_id, field, value, exclude_id))
                return field == 'vat_id'

        repository = StubRepository()
        guard = UniquenessGuard(repository)

        with self.assertRaises(UniquenessConflict):
            guard.check_all(7, {'legal_identifier': ' X1 ', 'vat_id': 'V1'}, exclude_id='abc')

        self.assertEqual(repository.calls, [
            (7, 'legal_identifier', 'X1', 'abc'),
            (7, 'vat_id', 'V1', 'abc'),
        ])


class ClientServiceTests(TestCase):
    """Test ClientService write and read paths"""

    def setUp(self):
        self.business = Business.objects.create(name='Tenant A')
        self.other_business = Business.objects.create(name='Tenant B')
        self.user = User.objects.create_user(username='owner', password='pass123', business=self.business)
        self.service = ClientService()

    def test_create_assigns_position_status_and_owner(self):
        """Test new clients are active, owned and appended to the order"""
        first = self.service.create(self.business, company_payload(), owner=self.user)
        second = self.service.create(self.business, individual_payload())

        self.assertEqual(first.sort_position, 0)
        self.assertEqual(second.sort_position, 1)
        self.assertEqual(first.status, Client.STATUS_ACTIVE)
        self.assertIsNotNone(first.created_at)
        self.assertEqual(first.owner, self.user)

    def test_positions_are_per_business(self):
        """Test each business has its own sequence"""
        self.service.create(self.business, company_payload())
        other = self.service.create(self.other_business, company_payload())

        self.assertEqual(other.sort_position, 0)

    def test_company_scenario_persisted(self):
        """Test the stored row and expanded view of a new company"""
        record = self.service.create(self.business, {
            'variant': 'company', 'legal_name': 'Acme SL', 'tax_id': 'B123', 'display_name': 'Acme',
        })
        record.refresh_from_db()

        self.assertEqual(record.legal_identifier, 'B123')
        self.assertEqual(json.loads(record.metadata), {'variant': 'company', 'legal_name': 'Acme SL'})

        view = self.service.get(self.business, record.pk)
        self.assertEqual(view.tax_id, 'B123')
        self.assertEqual(view.legal_name, 'Acme SL')

    def test_duplicate_legal_identifier_same_business(self):
        """Test the second client with the same legal identifier is rejected"""
        self.service.create(self.business, company_payload())

        with self.assertRaises(UniquenessConflict) as context:
            self.service.create(self.business, individual_payload(national_id='B123'))

        self.assertEqual(context.exception.field, 'legal_identifier')
        self.assertEqual(Client.objects.filter(business=self.business).count(), 1)

    def test_duplicate_vat_id_same_business(self):
        """Test the VAT id is checked even when the legal identifier is free"""
        self.service.create(self.business, company_payload())

        with self.assertRaises(UniquenessConflict) as context:
            self.service.create(self.business, company_payload(tax_id='B999'))

        self.assertEqual(context.exception.field, 'vat_id')

    def test_same_identifiers_in_different_businesses(self):
        """Test tenants do not share identifier namespaces"""
        self.service.create(self.business, company_payload())
        self.service.create(self.other_business, company_payload())

        self.assertEqual(Client.objects.filter(legal_identifier='B123').count(), 2)

    def test_database_constraint_is_attributed(self):
        """Test a constraint violation that bypasses the guard still names the field"""
        class PermissiveGuard(UniquenessGuard):
            def check_all(self, business_id, values, exclude_id=None):
                return None

        repository = ClientRepository()
        service = ClientService(repository, PermissiveGuard(repository))
        service.create(self.business, company_payload())

        with self.assertRaises(UniquenessConflict) as context:
            service.create(self.business, company_payload(vat_id='OTHER'))

        self.assertEqual(context.exception.field, 'legal_identifier')

    def test_update_replaces_whole_record(self):
        """Test update recompresses the full payload"""
        record = self.service.create(self.business, company_payload(commercial_address=dict(COMMERCIAL)))

        self.service.update(self.business, record.pk, company_payload(legal_name='Acme Group SL'))
        record.refresh_from_db()

        metadata = json.loads(record.metadata)
        self.assertEqual(metadata['legal_name'], 'Acme Group SL')
        self.assertNotIn('commercial_address', metadata)
        self.assertEqual(record.street, FISCAL['street'])
        self.assertEqual(record.sort_position, 0)

    def test_update_keeps_own_identifiers(self):
        """Test a record does not conflict with itself"""
        record = self.service.create(self.business, company_payload())

        self.service.update(self.business, record.pk, company_payload(tax_id='b123'))
        record.refresh_from_db()

        self.assertEqual(record.legal_identifier, 'b123')

    def test_update_can_switch_variant(self):
        """Test a company can be turned into an individual"""
        record = self.service.create(self.business, company_payload())

        self.service.update(self.business, record.pk, individual_payload(national_id='B123'))
        view = self.service.get(self.business, record.pk)

        self.assertIsInstance(view, IndividualView)
        self.assertEqual(view.national_id, 'B123')
        self.assertEqual(view.given_name, 'Maria')

    def test_update_conflict(self):
        """Test update cannot take another client's identifier"""
        self.service.create(self.business, company_payload())
        record = self.service.create(self.business, individual_payload())

        with self.assertRaises(UniquenessConflict):
            self.service.update(self.business, record.pk, individual_payload(national_id='B123'))

    def test_foreign_and_missing_records_not_found(self):
        """Test another tenant's client looks exactly like a missing one"""
        foreign = self.service.create(self.other_business, company_payload())

        for pk in [foreign.pk, '00000000-0000-0000-0000-000000000000', 'not-a-uuid']:
            with self.assertRaises(NotFound):
                self.service.get(self.business, pk)
            with self.assertRaises(NotFound):
                self.service.update(self.business, pk, company_payload())
            with self.assertRaises(NotFound):
                self.service.deactivate(self.business, pk)

    def test_deactivate_is_logical(self):
        """Test deactivation keeps the row"""
        record = self.service.create(self.business, company_payload())

        self.service.deactivate(self.business, record.pk)
        record.refresh_from_db()

        self.assertEqual(record.status, Client.STATUS_INACTIVE)
        self.assertIsNotNone(record.deactivated_at)
        self.assertEqual(Client.objects.count(), 1)


class ClientReorderTests(TestCase):
    """Test ClientService.reorder"""

    def setUp(self):
        self.business = Business.objects.create(name='Tenant A')
        self.other_business = Business.objects.create(name='Tenant B')
        self.service = ClientService()
        self.a = self.service.create(self.business, {'display_name': 'A'})
        self.b = self.service.create(self.business, {'display_name': 'B'})
        self.c = self.service.create(self.business, {'display_name': 'C'})

    def positions(self):
        return {
            record.display_name: record.sort_position
            for record in Client.objects.filter(business=self.business)
        }

    def test_move_last_to_first(self):
        """Test moving index 2 to index 0 renumbers densely"""
        self.service.reorder(self.business, [str(self.c.pk), str(self.a.pk), str(self.b.pk)])

        self.assertEqual(self.positions(), {'C': 0, 'A': 1, 'B': 2})

    def test_foreign_id_rejects_everything(self):
        """Test an id from another business rejects the whole request"""
        foreign = self.service.create(self.other_business, {'display_name': 'X'})

        with self.assertRaises(ReorderMismatch):
            self.service.reorder(self.business, [self.c.pk, self.a.pk, self.b.pk, foreign.pk])

        self.assertEqual(self.positions(), {'A': 0, 'B': 1, 'C': 2})

    def test_missing_id_rejected(self):
        """Test a partial list is rejected"""
        with self.assertRaises(ReorderMismatch):
            self.service.reorder(self.business, [self.c.pk, self.a.pk])

        self.assertEqual(self.positions(), {'A': 0, 'B': 1, 'C': 2})

    def test_duplicate_and_invalid_ids_rejected(self):
        """Test duplicated or malformed ids are rejected"""
        with self.assertRaises(ReorderMismatch):
            self.service.reorder(self.business, [self.a.pk, self.a.pk, self.b.pk, self.c.pk])
        with self.assertRaises(ReorderMismatch):
            self.service.reorder(self.business, [self.a.pk, self.b.pk, 'garbage'])

    def test_inactive_clients_follow_active_ones(self):
        """Test inactive clients keep unique positions after the active ones"""
        self.service.deactivate(self.business, self.a.pk)

        self.service.reorder(self.business, [self.c.pk, self.b.pk])

        self.assertEqual(self.positions(), {'C': 0, 'B': 1, 'A': 2})

    def test_new_client_after_reorder(self):
        """Test a client created after a reorder goes to the end"""
        self.service.reorder(self.business, [self.c.pk, self.b.pk, self.a.pk])

        record = self.service.create(self.business, {'display_name': 'D'})

        self.assertEqual(record.sort_position, 3)

    def test_positions_stay_unique(self):
        """Test creates, deactivations and reorders never share a position"""
        self.service.deactivate(self.business, self.b.pk)
        d = self.service.create(self.business, {'display_name': 'D'})
        self.service.reorder(self.business, [d.pk, self.c.pk, self.a.pk])
        self.service.create(self.business, {'display_name': 'E'})

        positions = list(self.positions().values())

        self.assertEqual(sorted(positions), list(range(5)))
        self.assertEqual(self.positions()['B'], 3)


class ClientViewSetTests(APITestCase):
    """Test ClientViewSet endpoints"""

    def setUp(self):
        self.client = APIClient()
        self.business = Business.objects.create(name='Tenant A')
        self.other_business = Business.objects.create(name='Tenant B')
        self.user = User.objects.create_user(username='owner', password='pass123', business=self.business)
        self.outsider = User.objects.create_user(username='outsider', password='pass123', business=self.other_business)
        self.newcomer = User.objects.create_user(username='newcomer', password='pass123')
        self.url = reverse('clients-list')

    def detail_url(self, pk):
        return reverse('clients-detail', kwargs={'pk': pk})

    def test_list_unauthenticated(self):
        """Test listing clients without authentication"""
        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_user_without_business_forbidden(self):
        """Test users must finish the business setup first"""
        self.client.force_authenticate(user=self.newcomer)
        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['message'], 'No business is associated with this account')

    def test_create_company(self):
        """Test creating a company returns its expanded view"""
        self.client.force_authenticate(user=self.user)
        response = self.client.post(self.url, company_payload(), format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['variant'], 'company')
        self.assertEqual(response.data['tax_id'], 'B123')
        self.assertEqual(response.data['legal_name'], 'Acme SL')
        self.assertEqual(response.data['commercial_address']['street'], FISCAL['street'])
        self.assertEqual(response.data['sort_position'], 0)
        record = Client.objects.get(pk=response.data['id'])
        self.assertEqual(record.business, self.business)
        self.assertEqual(record.owner, self.user)

    def test_create_individual(self):
        """Test creating an individual"""
        self.client.force_authenticate(user=self.user)
        response = self.client.post(self.url, individual_payload(), format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['variant'], 'individual')
        self.assertEqual(response.data['display_name'], 'Maria Lopez Garcia')
        self.assertEqual(response.data['given_name'], 'Maria')
        self.assertEqual(response.data['national_id'], '12345678Z')

    def test_create_validation_errors(self):
        """Test missing names are reported per field"""
        self.client.force_authenticate(user=self.user)
        response = self.client.post(self.url, individual_payload(given_name=''), format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('given_name', response.data['errors'])
        self.assertEqual(Client.objects.count(), 0)

    def test_create_invalid_email(self):
        """Test shared field validation"""
        self.client.force_authenticate(user=self.user)
        response = self.client.post(self.url, company_payload(email='not-an-email'), format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('email', response.data['errors'])

    def test_create_conflict(self):
        """Test duplicate identifiers return 409 with the field name"""
        self.client.force_authenticate(user=self.user)
        self.client.post(self.url, company_payload(), format='json')
        response = self.client.post(self.url, company_payload(tax_id='B999'), format='json')

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['field'], 'vat_id')
        self.assertIn('message', response.data)

    def test_same_identifiers_other_tenant(self):
        """Test another business can reuse the identifiers"""
        self.client.force_authenticate(user=self.user)
        self.client.post(self.url, company_payload(), format='json')
        self.client.force_authenticate(user=self.outsider)
        response = self.client.post(self.url, company_payload(), format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_retrieve_other_tenant_is_not_found(self):
        """Test foreign and missing clients give the same response"""
        foreign = ClientService().create(self.other_business, company_payload())
        self.client.force_authenticate(user=self.user)

        foreign_response = self.client.get(self.detail_url(foreign.pk))
        missing_response = self.client.get(self.detail_url('00000000-0000-0000-0000-000000000000'))

        self.assertEqual(foreign_response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(missing_response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(foreign_response.data, missing_response.data)

    def test_retrieve_malformed_side_channel(self):
        """Test a corrupt side channel still renders"""
        record = Client.objects.create(business=self.business, display_name='Legacy', metadata='{not json')
        self.client.force_authenticate(user=self.user)

        response = self.client.get(self.detail_url(record.pk))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['variant'], 'company')
        self.assertEqual(response.data['display_name'], 'Legacy')

    def test_list_returns_raw_rows(self):
        """Test the table gets stored rows with the side channel and resolved variant"""
        service = ClientService()
        service.create(self.business, company_payload())
        service.create(self.business, individual_payload())
        service.create(self.other_business, company_payload())
        self.client.force_authenticate(user=self.user)

        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)
        first, second = response.data['results']
        self.assertEqual(first['variant'], 'company')
        self.assertEqual(json.loads(first['metadata'])['legal_name'], 'Acme SL')
        self.assertEqual(second['variant'], 'individual')

    def test_list_excludes_inactive_by_default(self):
        """Test deactivated clients only show when asked for"""
        service = ClientService()
        record = service.create(self.business, company_payload())
        service.create(self.business, individual_payload())
        service.deactivate(self.business, record.pk)
        self.client.force_authenticate(user=self.user)

        active = self.client.get(self.url)
        inactive = self.client.get(self.url, {'status': 'inactive'})

        self.assertEqual(active.data['count'], 1)
        self.assertEqual(inactive.data['count'], 1)
        self.assertEqual(inactive.data['results'][0]['id'], str(record.pk))

    def test_filter_by_variant_and_search(self):
        """Test variant filter and free-text search"""
        service = ClientService()
        service.create(self.business, company_payload())
        service.create(self.business, individual_payload())
        self.client.force_authenticate(user=self.user)

        individuals = self.client.get(self.url, {'variant': 'individual'})
        search = self.client.get(self.url, {'search': 'acme'})

        self.assertEqual(individuals.data['count'], 1)
        self.assertEqual(individuals.data['results'][0]['display_name'], 'Maria Lopez Garcia')
        self.assertEqual(search.data['count'], 1)

    def test_filter_by_variant_matches_compact_json(self):
        """Test the variant filter agrees with the reported variant whatever the JSON spacing"""
        company = Client.objects.create(
            business=self.business,
            display_name='Acme',
            metadata='{"variant":"company","legal_name":"Acme SL"}',
        )
        individual = Client.objects.create(
            business=self.business,
            display_name='Ana Ruiz',
            metadata='{"surname":"Ruiz",  "variant" :  "individual"}',
        )
        self.client.force_authenticate(user=self.user)

        companies = self.client.get(self.url, {'variant': 'company'})
        individuals = self.client.get(self.url, {'variant': 'individual'})

        self.assertEqual(companies.data['count'], 1)
        self.assertEqual(companies.data['results'][0]['id'], str(company.pk))
        self.assertEqual(companies.data['results'][0]['variant'], 'company')
        self.assertEqual(individuals.data['count'], 1)
        self.assertEqual(individuals.data['results'][0]['id'], str(individual.pk))

    def test_retrieve_mistyped_side_channel(self):
        """Test a side channel with wrongly typed values still renders"""
        record = Client.objects.create(
            business=self.business,
            display_name='Ana Ruiz',
            sort_position=4,
            metadata='{"variant": "individual", "surname": 7, "display_name": ["x"], "sort_position": "first"}',
        )
        self.client.force_authenticate(user=self.user)

        response = self.client.get(self.detail_url(record.pk))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['display_name'], 'Ana Ruiz')
        self.assertEqual(response.data['given_name'], 'Ana Ruiz')
        self.assertEqual(response.data['sort_position'], 4)

    def test_update_requires_full_form(self):
        """Test PUT replaces the client"""
        record = ClientService().create(self.business, company_payload())
        self.client.force_authenticate(user=self.user)

        response = self.client.put(
            self.detail_url(record.pk),
            company_payload(display_name='Acme Renamed', commercial_address=dict(COMMERCIAL)),
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['display_name'], 'Acme Renamed')
        self.assertFalse(response.data['same_as_fiscal'])
        self.assertEqual(response.data['commercial_address']['street'], 'Gran Via 20')

    def test_patch_validates_like_put(self):
        """Test PATCH with a partial form is rejected"""
        record = ClientService().create(self.business, individual_payload())
        self.client.force_authenticate(user=self.user)

        response = self.client.patch(
            self.detail_url(record.pk), {'variant': 'individual', 'surname': 'Ruiz'}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_other_tenant(self):
        """Test a foreign client cannot be updated"""
        foreign = ClientService().create(self.other_business, company_payload())
        self.client.force_authenticate(user=self.user)

        response = self.client.put(self.detail_url(foreign.pk), company_payload(), format='json')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_delete_is_logical(self):
        """Test DELETE deactivates the client"""
        record = ClientService().create(self.business, company_payload())
        self.client.force_authenticate(user=self.user)

        response = self.client.delete(self.detail_url(record.pk))

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        record.refresh_from_db()
        self.assertEqual(record.status, Client.STATUS_INACTIVE)

    def test_reorder_endpoint(self):
        """Test persisting a new order"""
        service = ClientService()
        a = service.create(self.business, {'display_name': 'A'})
        b = service.create(self.business, {'display_name': 'B'})
        self.client.force_authenticate(user=self.user)

        response = self.client.post(
            reverse('clients-reorder'), {'ids': [str(b.pk), str(a.pk)]}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        a.refresh_from_db()
        b.refresh_from_db()
        self.assertEqual((b.sort_position, a.sort_position), (0, 1))

    def test_reorder_endpoint_rejects_foreign_ids(self):
        """Test a reorder naming another tenant's client is rejected"""
        service = ClientService()
        a = service.create(self.business, {'display_name': 'A'})
        foreign = service.create(self.other_business, {'display_name': 'X'})
        self.client.force_authenticate(user=self.user)

        response = self.client.post(
            reverse('clients-reorder'), {'ids': [str(foreign.pk), str(a.pk)]}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['field'], 'ids')
        a.refresh_from_db()
        self.assertEqual(a.sort_position, 0)
