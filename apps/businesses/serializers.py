# apps/businesses/serializers.py
from rest_framework import serializers

from apps.core.exceptions import UniquenessConflict
from .models import Business


class BusinessSerializer(serializers.ModelSerializer):
    """Business setup / edit form. Blank optional strings are stored as null."""

    NULLABLE_FIELDS = (
        'tax_id', 'street', 'city', 'postal_code', 'province', 'country',
        'email', 'phone', 'website', 'logo',
    )

    class Meta:
        model = Business
        fields = [
            'id', 'name', 'tax_id', 'street', 'city', 'postal_code', 'province',
            'country', 'email', 'phone', 'website', 'logo', 'status',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'status', 'created_at', 'updated_at']
        extra_kwargs = {
            'name': {'error_messages': {'blank': 'The business name is required'}},
        }

    def to_internal_value(self, data):
        if hasattr(data, 'copy'):
            data = data.copy()
            for name in self.NULLABLE_FIELDS:
                value = data.get(name)
                if isinstance(value, str) and not value.strip():
                    data[name] = None
        return super().to_internal_value(data)

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('The business name is required')
        return value

    def validate_tax_id(self, value):
        if not value:
            return None
        value = value.strip()
        duplicates = Business.objects.filter(tax_id__iexact=value)
        if self.instance is not None:
            duplicates = duplicates.exclude(pk=self.instance.pk)
        if duplicates.exists():
            raise UniquenessConflict('tax_id')
        return value


class BusinessSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Business
        fields = ['id', 'name', 'status']
