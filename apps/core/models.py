# apps/core/models.py
"""
Abstract base models for common patterns.
Use these as base classes to ensure consistency across models.
"""
from django.db import models


class TimeStampedModel(models.Model):
    """
    Abstract model providing automatic timestamp fields.
    Inherit from this for models that need created/updated tracking.
    """
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ['-created_at']


class AddressFieldsModel(models.Model):
    """
    Abstract model providing the five postal address columns.
    Used by businesses and by the client commercial address.
    """
    street = models.CharField(max_length=255, blank=True, null=True)
    city = models.CharField(max_length=100, blank=True, null=True)
    postal_code = models.CharField(max_length=20, blank=True, null=True)
    province = models.CharField(max_length=100, blank=True, null=True)
    country = models.CharField(max_length=100, blank=True, null=True)

    ADDRESS_FIELDS = ('street', 'city', 'postal_code', 'province', 'country')

    class Meta:
        abstract = True

    @property
    def address(self):
        return {name: getattr(self, name) for name in self.ADDRESS_FIELDS}
