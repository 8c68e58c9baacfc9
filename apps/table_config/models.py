# apps/table_config/models.py
from django.conf import settings
from django.db import models

from apps.core.models import TimeStampedModel


class TableConfig(TimeStampedModel):
    """
    Per-user UI state of a data table: visible columns, sorting, page size.
    The config document is opaque to the backend.
    """
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='table_configs'
    )
    table_id = models.CharField(max_length=100)
    config = models.JSONField(default=dict)

    class Meta:
        ordering = ['table_id']
        constraints = [
            models.UniqueConstraint(fields=['user', 'table_id'], name='table_config_user_table_unique'),
        ]

    def __str__(self):
        return f"{self.user} - {self.table_id}"
