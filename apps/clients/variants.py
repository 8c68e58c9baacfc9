# apps/clients/variants.py
"""
Variant resolution for client records.

A client row is either a company or an individual. Nothing in the table
says which, so the variant is recovered from, in order:

    1. an explicit hint from the caller (e.g. the variant picked in a form)
    2. a `variant` attribute already carried by the record
    3. the `variant` key of the JSON side channel
    4. company-only keys in the side channel
    5. individual-only keys in the side channel
    6. the default, company

Resolution never raises. Legacy rows with no signal at all resolve to the
default, which can be wrong for untagged individuals; that is a known
limitation and no smarter guess is attempted.
"""
import json

COMPANY = 'company'
INDIVIDUAL = 'individual'
VARIANTS = (COMPANY, INDIVIDUAL)
VARIANT_CHOICES = [
    (COMPANY, 'Company'),
    (INDIVIDUAL, 'Individual'),
]
DEFAULT_VARIANT = COMPANY

COMPANY_ONLY_KEYS = ('legal_name', 'fiscal_address', 'commercial_address')
INDIVIDUAL_ONLY_KEYS = ('surname', 'given_name')


def read_side_channel(raw):
    """
    Decode a stored side channel.

    Malformed side channel policy: the side channel is advisory. Empty
    values, invalid JSON and JSON that is not an object all read as an
    empty mapping, so a corrupt row still renders and can be edited.
    """
    if raw is None:
        return {}
    if isinstance(raw, dict):
        return dict(raw)
    if not isinstance(raw, (str, bytes, bytearray)) or not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except ValueError:
        return {}
    if not isinstance(data, dict):
        return {}
    return data


def has_value(value):
    """True for anything other than None, blank strings and empty/blank mappings"""
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, dict):
        return any(has_value(item) for item in value.values())
    if isinstance(value, (list, tuple)):
        return len(value) > 0
    return True


def _attr(record, name):
    if isinstance(record, dict):
        return record.get(name)
    return getattr(record, name, None)


def _valid(variant):
    return variant if variant in VARIANTS else None


def resolve_variant(record, hint=None):
    """Return 'company' or 'individual' for a stored record, a view or a mapping"""
    variant = _valid(hint) or _valid(_attr(record, 'variant'))
    if variant:
        return variant

    side_channel = read_side_channel(_attr(record, 'metadata'))
    variant = _valid(side_channel.get('variant'))
    if variant:
        return variant

    if any(has_value(side_channel.get(key)) for key in COMPANY_ONLY_KEYS):
        return COMPANY
    if any(has_value(side_channel.get(key)) for key in INDIVIDUAL_ONLY_KEYS):
        return INDIVIDUAL

    return DEFAULT_VARIANT
