# apps/businesses/models.py
from django.db import models
from django.db.models.functions import Lower

from apps.core.models import TimeStampedModel, AddressFieldsModel


class Business(TimeStampedModel, AddressFieldsModel):
    """
    The tenant. Every client record and every uniqueness rule
    on clients is scoped to one business.
    """
    STATUS_ACTIVE = 'active'
    STATUS_INACTIVE = 'inactive'
    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_INACTIVE, 'Inactive'),
    ]

    name = models.CharField(max_length=255)
    tax_id = models.CharField(max_length=50, blank=True, null=True, verbose_name="Tax ID (CIF/NIF)")
    email = models.EmailField(blank=True, null=True)
    phone = models.CharField(max_length=30, blank=True, null=True)
    website = models.URLField(blank=True, null=True)
    logo = models.CharField(max_length=500, blank=True, null=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE)

    class Meta:
        ordering = ['name']
        verbose_name_plural = 'businesses'
        constraints = [
            models.UniqueConstraint(Lower('tax_id'), name='business_tax_id_ci_unique'),
        ]

    def __str__(self):
        return self.name
