# apps/clients/projection.py
"""
Projection between stored client rows and variant view models.

`expand` turns a stored row (base columns + JSON side channel) into a
CompanyView or IndividualView. `compress` turns a validated create/update
payload back into base column values plus the serialized side channel.
Both are pure: no database access, no logging.
"""
import json
from dataclasses import dataclass, field, fields as dataclass_fields
from datetime import date, datetime
from typing import ClassVar, Optional

from .variants import COMPANY, INDIVIDUAL, read_side_channel, resolve_variant

ADDRESS_PARTS = ('street', 'city', 'postal_code', 'province', 'country')
DEFAULT_CATEGORY = 'client'

# Columns copied verbatim from the payload, whatever the variant
SHARED_FIELDS = (
    'vat_id', 'email', 'phone', 'mobile', 'website', 'category', 'notes',
    'contact_person', 'language', 'currency', 'registration_date', 'birth_date',
)

# Base columns exposed on every view
BASE_FIELDS = (
    'id', 'business_id', 'owner_id', 'display_name', 'legal_identifier',
) + SHARED_FIELDS + (
    'status', 'sort_position', 'created_at', 'updated_at', 'deactivated_at',
)

# Identity columns the side channel can never override
PROTECTED_FIELDS = ('id', 'business_id', 'owner_id')

# Side channel keys holding nested addresses
ADDRESS_KEYS = ('fiscal_address', 'commercial_address', 'address')
INTEGER_FIELDS = ('sort_position',)
# Base columns and variant fields the side channel may only override with strings
VIEW_TEXT_FIELDS = tuple(
    name for name in BASE_FIELDS if name not in PROTECTED_FIELDS + INTEGER_FIELDS
) + ('legal_name', 'tax_id', 'given_name', 'surname', 'national_id')


def _fits(name, value):
    """
    Whether a side channel value has the type its view field expects.
    Nulls always fit; keys that are not view fields take anything.
    """
    if value is None:
        return True
    if name in ADDRESS_KEYS:
        return isinstance(value, dict)
    if name in INTEGER_FIELDS:
        return isinstance(value, int) and not isinstance(value, bool)
    if name in VIEW_TEXT_FIELDS:
        return isinstance(value, str)
    return True


def _text(value):
    return value if isinstance(value, str) else None


def _clean(value):
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


@dataclass(frozen=True)
class Address:
    street: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    province: Optional[str] = None
    country: Optional[str] = None

    @classmethod
    def from_mapping(cls, data):
        """Build an address from a mapping; None when nothing is filled in"""
        if not isinstance(data, dict):
            return None
        address = cls(**{part: _clean(_text(data.get(part))) for part in ADDRESS_PARTS})
        return None if address.is_blank else address

    @classmethod
    def from_columns(cls, record):
        return cls.from_mapping({part: getattr(record, part, None) for part in ADDRESS_PARTS})

    @property
    def is_blank(self):
        return not any(getattr(self, part) for part in ADDRESS_PARTS)

    def as_dict(self):
        return {part: getattr(self, part) for part in ADDRESS_PARTS}

    def compact(self):
        """Filled-in parts only, for the side channel"""
        return {part: value for part, value in self.as_dict().items() if value is not None}


def address_columns(address):
    """Base column values for an address (all None when there is none)"""
    if address is None:
        return {part: None for part in ADDRESS_PARTS}
    return address.as_dict()


@dataclass
class ClientView:
    """Fields shared by both variants"""
    variant: ClassVar[str] = None

    id: object = None
    business_id: object = None
    owner_id: object = None
    display_name: Optional[str] = None
    legal_identifier: Optional[str] = None
    vat_id: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    mobile: Optional[str] = None
    website: Optional[str] = None
    category: Optional[str] = None
    notes: Optional[str] = None
    contact_person: Optional[str] = None
    language: Optional[str] = None
    currency: Optional[str] = None
    registration_date: Optional[date] = None
    birth_date: Optional[date] = None
    status: Optional[str] = None
    sort_position: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deactivated_at: Optional[datetime] = None
    # Side channel keys with no field on the view
    extra: dict = field(default_factory=dict)


@dataclass
class CompanyView(ClientView):
    variant: ClassVar[str] = COMPANY

    tax_id: Optional[str] = None
    legal_name: Optional[str] = None
    fiscal_address: Optional[Address] = None
    commercial_address: Optional[Address] = None
    # True when no separate commercial address was stored
    same_as_fiscal: bool = True


@dataclass
class IndividualView(ClientView):
    variant: ClassVar[str] = INDIVIDUAL

    national_id: Optional[str] = None
    given_name: Optional[str] = None
    surname: Optional[str] = None
    address: Optional[Address] = None


def strip_surname(display_name, surname):
    """
    Recover the given name from "<given name> <surname>".
    Falls back to the full display name when it does not end with the surname.
    """
    display_name = (display_name or '').strip()
    surname = (surname or '').strip()
    if surname and display_name.endswith(surname):
        given_name = display_name[:-len(surname)].strip()
        if given_name:
            return given_name
    return display_name


def expand(record, hint=None):
    """
    Build the variant view of a stored client.

    Side channel keys are overlaid on the base columns and win on conflict.
    A malformed side channel contributes nothing: the view then holds the
    base columns only, under the resolved (usually default) variant. Keys
    whose value has the wrong type for their field are dropped the same way.
    """
    side_channel = read_side_channel(getattr(record, 'metadata', None))
    variant = resolve_variant(record, hint)

    merged = {name: getattr(record, name, None) for name in BASE_FIELDS}
    merged.update({
        key: value for key, value in side_channel.items()
        if key not in PROTECTED_FIELDS and _fits(key, value)
    })
    merged.pop('variant', None)

    view_class = CompanyView if variant == COMPANY else IndividualView
    known = {f.name for f in dataclass_fields(view_class)} - {'extra'}
    values = {name: merged[name] for name in BASE_FIELDS if name in merged}
    extra = {key: value for key, value in side_channel.items()
             if key != 'variant' and key not in known}
    legal_identifier = values.get('legal_identifier')

    if variant == COMPANY:
        override = Address.from_mapping(side_channel.get('commercial_address'))
        return CompanyView(
            **values,
            extra=extra,
            tax_id=legal_identifier,
            legal_name=merged.get('legal_name'),
            fiscal_address=Address.from_mapping(merged.get('fiscal_address')),
            commercial_address=override or Address.from_columns(record),
            same_as_fiscal=override is None,
        )

    surname = merged.get('surname')
    return IndividualView(
        **values,
        extra=extra,
        national_id=legal_identifier,
        given_name=strip_surname(values.get('display_name'), surname),
        surname=surname,
        address=Address.from_mapping(merged.get('address')) or Address.from_columns(record),
    )


@dataclass(frozen=True)
class CompressedClient:
    """Base column values plus the serialized side channel"""
    fields: dict
    metadata: Optional[str]

    def as_model_fields(self):
        return {**self.fields, 'metadata': self.metadata}


def dump_side_channel(data):
    """Deterministic JSON: sorted keys, no insignificant whitespace variance"""
    return json.dumps(data, sort_keys=True, ensure_ascii=False)


def compress(payload):
    """
    Turn a validated client payload into storage values.

    Company:    legal_identifier <- tax_id; address columns <- commercial
                address, or the fiscal address when none was given.
    Individual: legal_identifier <- national_id; display_name <- given name
                and surname; address columns <- address.
    No variant: legacy path, columns only and no side channel.

    The same payload always yields the same output, byte for byte.
    """
    variant = payload.get('variant')
    fields = {name: _clean(payload.get(name)) for name in SHARED_FIELDS}
    fields['category'] = fields['category'] or DEFAULT_CATEGORY

    if variant == COMPANY:
        fiscal = Address.from_mapping(payload.get('fiscal_address'))
        commercial = None
        if not payload.get('same_as_fiscal'):
            commercial = Address.from_mapping(payload.get('commercial_address'))
        legal_name = _clean(payload.get('legal_name'))

        fields['display_name'] = _clean(payload.get('display_name')) or legal_name
        fields['legal_identifier'] = _clean(payload.get('tax_id'))
        fields.update(address_columns(commercial or fiscal))

        side_channel = {'variant': COMPANY}
        if legal_name:
            side_channel['legal_name'] = legal_name
        if fiscal is not None:
            side_channel['fiscal_address'] = fiscal.compact()
        if commercial is not None and commercial != fiscal:
            side_channel['commercial_address'] = commercial.compact()
        return CompressedClient(fields, dump_side_channel(side_channel))

    if variant == INDIVIDUAL:
        given_name = _clean(payload.get('given_name'))
        surname = _clean(payload.get('surname'))

        fields['display_name'] = ' '.join(part for part in (given_name, surname) if part)
        fields['legal_identifier'] = _clean(payload.get('national_id'))
        fields.update(address_columns(Address.from_mapping(payload.get('address'))))

        side_channel = {'variant': INDIVIDUAL}
        if given_name:
            side_channel['given_name'] = given_name
        if surname:
            side_channel['surname'] = surname
        return CompressedClient(fields, dump_side_channel(side_channel))

    fields['display_name'] = _clean(payload.get('display_name'))
    fields['legal_identifier'] = _clean(payload.get('legal_identifier'))
    fields.update(address_columns(Address.from_mapping(payload.get('address'))))
    return CompressedClient(fields, None)


def apply_to_record(record, compressed):
    """Write compressed values onto an unsaved or existing model instance"""
    for name, value in compressed.as_model_fields().items():
        setattr(record, name, value)
    return record

