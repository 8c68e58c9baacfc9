# apps/clients/models.py
import uuid

from django.conf import settings
from django.db import models
from django.db.models.functions import Lower

from apps.core.models import AddressFieldsModel


class Client(AddressFieldsModel):
    """
    A client of a business: either a company or an individual.

    Both variants share this table. Fields without a dedicated column
    (legal name, fiscal address, surname, ...) live in `metadata`, a JSON
    encoded side channel managed by apps.clients.projection. The address
    columns hold the commercial address used for search and listing.
    """
    STATUS_ACTIVE = 'active'
    STATUS_INACTIVE = 'inactive'
    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_INACTIVE, 'Inactive'),
    ]

    CATEGORY_CLIENT = 'client'
    CATEGORY_SUPPLIER = 'supplier'
    CATEGORY_PROSPECT = 'prospect'
    CATEGORY_CHOICES = [
        (CATEGORY_CLIENT, 'Client'),
        (CATEGORY_SUPPLIER, 'Supplier'),
        (CATEGORY_PROSPECT, 'Prospect'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    business = models.ForeignKey(
        'businesses.Business',
        on_delete=models.CASCADE,
        related_name='clients'
    )
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='clients'
    )

    display_name = models.CharField(max_length=255, db_index=True)
    # Tax id for companies, national id for individuals
    legal_identifier = models.CharField(max_length=50, blank=True, null=True)
    vat_id = models.CharField(max_length=50, blank=True, null=True, verbose_name="VAT ID")

    email = models.EmailField(blank=True, null=True)
    phone = models.CharField(max_length=30, blank=True, null=True)
    mobile = models.CharField(max_length=30, blank=True, null=True)
    website = models.CharField(max_length=255, blank=True, null=True)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE, db_index=True)
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default=CATEGORY_CLIENT)
    notes = models.TextField(blank=True, null=True)
    contact_person = models.CharField(max_length=255, blank=True, null=True)
    language = models.CharField(max_length=10, blank=True, null=True)
    currency = models.CharField(max_length=3, blank=True, null=True)
    registration_date = models.DateField(blank=True, null=True)
    birth_date = models.DateField(blank=True, null=True)

    metadata = models.TextField(blank=True, null=True)
    # Unique per business, kept so by ClientRepository under a lock on the business row.
    # No database constraint: reorders rewrite positions in place through bulk_update.
    sort_position = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    deactivated_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        ordering = ['sort_position', 'display_name']
        indexes = [
            models.Index(fields=['business', 'status', 'sort_position'], name='client_biz_status_pos_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                'business', Lower('legal_identifier'),
                name='client_legal_identifier_ci_unique'
            ),
            models.UniqueConstraint(
                'business', Lower('vat_id'),
                name='client_vat_id_ci_unique'
            ),
        ]

    def __str__(self):
        return self.display_name

    @property
    def is_active(self):
        return self.status == self.STATUS_ACTIVE
