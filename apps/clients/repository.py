# apps/clients/repository.py
"""
Persistence collaborator for client records.
Every query is scoped to one business (tenant).
"""
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import Max

from apps.businesses.models import Business
from .models import Client


class ClientRepository:
    """
    Django ORM implementation of the client store.
    Services and the uniqueness guard receive an instance instead of
    touching Client.objects directly.
    """
    model = Client

    def for_business(self, business_id):
        return self.model.objects.filter(business_id=business_id)

    def find_by_id(self, business_id, pk):
        """The client, or None when it is missing or owned by another business"""
        try:
            return self.for_business(business_id).filter(pk=pk).first()
        except (DjangoValidationError, ValueError, TypeError):
            return None

    def find_many(self, business_id, **filters):
        return self.for_business(business_id).filter(**filters)

    def value_taken(self, business_id, field, value, exclude_id=None):
        """Case-insensitive lookup of `value` in `field` among the business's clients"""
        queryset = self.for_business(business_id).filter(**{f'{field}__iexact': value})
        if exclude_id is not None:
            queryset = queryset.exclude(pk=exclude_id)
        return queryset.exists()

    @transaction.atomic
    def next_position(self, business_id):
        """
        Current max sort position + 1 (0 for the first client).
        Locks the business row so concurrent creates get distinct positions.
        """
        Business.objects.select_for_update().filter(pk=business_id).first()
        current = self.for_business(business_id).aggregate(top=Max('sort_position'))['top']
        return 0 if current is None else current + 1

    def create(self, **fields):
        return self.model.objects.create(**fields)

    def update(self, record, fields):
        for name, value in fields.items():
            setattr(record, name, value)
        record.save()
        return record

    @transaction.atomic
    def batch_update_positions(self, business_id, positions):
        """
        Apply [(id, position), ...] in one transaction: all rows or none.
        """
        position_by_id = {str(pk): position for pk, position in positions}
        records = list(
            self.for_business(business_id)
            .select_for_update()
            .filter(pk__in=list(position_by_id))
        )
        if len(records) != len(position_by_id):
            raise LookupError("Position update references unknown clients")
        for record in records:
            record.sort_position = position_by_id[str(record.pk)]
        self.model.objects.bulk_update(records, ['sort_position'])
        return records
