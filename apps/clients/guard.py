# apps/clients/guard.py
"""
Uniqueness guard for client identifiers.

The legal identifier (company tax id or individual national id) and the
VAT id must each be unique within a business, case-insensitively and
regardless of the client variant. The guard produces a field-attributed
conflict before the database constraint would fail with an opaque error.
Concurrent writers can still race past it; the constraint is the backstop.
"""
from apps.core.exceptions import UniquenessConflict

UNIQUE_FIELDS = ('legal_identifier', 'vat_id')


class UniquenessGuard:

    def __init__(self, repository):
        self.repository = repository

    def find_conflict(self, business_id, field, value, exclude_id=None):
        """Return a UniquenessConflict for `field`, or None when the value is free"""
        if field not in UNIQUE_FIELDS:
            raise ValueError(f"{field!r} is not a unique client field")
        if value is None or not str(value).strip():
            return None
        if self.repository.value_taken(business_id, field, str(value).strip(), exclude_id):
            return UniquenessConflict(field)
        return None

    def check_unique(self, business_id, field, value, exclude_id=None):
        conflict = self.find_conflict(business_id, field, value, exclude_id)
        if conflict is not None:
            raise conflict

    def check_all(self, business_id, values, exclude_id=None):
        """
        Check every unique field present in `values`.
        Each field is checked on its own; the first conflict is raised.
        """
        for field in UNIQUE_FIELDS:
            self.check_unique(business_id, field, values.get(field), exclude_id)
