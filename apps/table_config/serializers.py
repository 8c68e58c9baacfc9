# apps/table_config/serializers.py
from rest_framework import serializers

from .models import TableConfig


class TableConfigSerializer(serializers.ModelSerializer):
    class Meta:
        model = TableConfig
        fields = ['id', 'table_id', 'config', 'updated_at']
        read_only_fields = ['id', 'updated_at']
        # Upserts go through save_for_user; the (user, table_id) constraint is handled there
        validators = []

    def validate_config(self, value):
        if not isinstance(value, dict) or not value:
            raise serializers.ValidationError('config must be a non-empty object')
        return value

    def save_for_user(self, user):
        table_config, created = TableConfig.objects.update_or_create(
            user=user,
            table_id=self.validated_data['table_id'],
            defaults={'config': self.validated_data['config']},
        )
        self.instance = table_config
        return table_config, created
