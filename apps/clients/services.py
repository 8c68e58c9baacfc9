# apps/clients/services.py
"""
Service layer for client records.
Runs the write path (compress -> uniqueness guard -> persistence)
and the read path (persistence -> expand).
"""
import logging
import uuid

from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.core.exceptions import NotFound, ReorderMismatch
from .guard import UniquenessGuard
from .models import Client
from .projection import compress, expand
from .repository import ClientRepository

logger = logging.getLogger(__name__)


class ClientService:
    """
    Client operations for one request. Collaborators are injected;
    defaults are the Django ORM repository and a guard over it.
    """

    def __init__(self, repository=None, guard=None):
        self.repository = repository or ClientRepository()
        self.guard = guard or UniquenessGuard(self.repository)

    def _business_id(self, business):
        return getattr(business, 'pk', business)

    def get_record(self, business, pk):
        record = self.repository.find_by_id(self._business_id(business), pk)
        if record is None:
            raise NotFound()
        return record

    def get(self, business, pk):
        """Expanded view of one client of the business"""
        return expand(self.get_record(business, pk))

    def _save(self, business_id, write, values, exclude_id=None):
        """
        Run `write` in a savepoint. A unique constraint failure that slipped
        past the guard is re-attributed to the offending field.
        """
        try:
            with transaction.atomic():
                return write()
        except IntegrityError:
            for field in ('legal_identifier', 'vat_id'):
                conflict = self.guard.find_conflict(business_id, field, values.get(field), exclude_id)
                if conflict is not None:
                    raise conflict
            raise

    def create(self, business, payload, owner=None):
        """
        Create a client from a full variant payload.
        New clients are active and go to the end of the manual order.
        """
        business_id = self._business_id(business)
        compressed = compress(payload)
        self.guard.check_all(business_id, compressed.fields)

        def write():
            return self.repository.create(
                **compressed.as_model_fields(),
                business_id=business_id,
                owner=owner,
                status=Client.STATUS_ACTIVE,
                sort_position=self.repository.next_position(business_id),
            )

        record = self._save(business_id, write, compressed.fields)
        logger.info("Client %s created in business %s", record.pk, business_id)
        return record

    def update(self, business, pk, payload):
        """
        Replace a client with a full variant payload.
        The whole compression runs again; nothing is merged with the old row.
        """
        business_id = self._business_id(business)
        record = self.get_record(business, pk)
        compressed = compress(payload)
        self.guard.check_all(business_id, compressed.fields, exclude_id=record.pk)

        record = self._save(
            business_id,
            lambda: self.repository.update(record, compressed.as_model_fields()),
            compressed.fields,
            exclude_id=record.pk,
        )
        logger.info("Client %s updated in business %s", record.pk, business_id)
        return record

    def deactivate(self, business, pk):
        """Logical delete: the row stays, marked inactive"""
        record = self.get_record(business, pk)
        record = self.repository.update(record, {
            'status': Client.STATUS_INACTIVE,
            'deactivated_at': timezone.now(),
        })
        logger.info("Client %s deactivated in business %s", record.pk, self._business_id(business))
        return record

    def reorder(self, business, ids):
        """
        Persist a manual order for the business's active clients.

        `ids` must list every active client exactly once. Active clients get
        positions 0..N-1 in that order; inactive clients follow, keeping
        their relative order. Any mismatch rejects the whole request.
        """
        business_id = self._business_id(business)
        try:
            ordered = [uuid.UUID(str(pk)) for pk in ids]
        except (TypeError, ValueError, AttributeError):
            raise ReorderMismatch()

        active = set(
            self.repository.find_many(business_id, status=Client.STATUS_ACTIVE)
            .values_list('pk', flat=True)
        )
        if len(ordered) != len(set(ordered)) or set(ordered) != active:
            logger.warning(
                "Rejected reorder for business %s: %d ids submitted, %d active clients",
                business_id, len(ordered), len(active)
            )
            raise ReorderMismatch()

        inactive = (
            self.repository.find_many(business_id)
            .exclude(status=Client.STATUS_ACTIVE)
            .order_by('sort_position', 'created_at')
            .values_list('pk', flat=True)
        )
        sequence = ordered + list(inactive)
        positions = [(pk, position) for position, pk in enumerate(sequence)]
        self.repository.batch_update_positions(business_id, positions)
        logger.info("Reordered %d clients in business %s", len(ordered), business_id)
