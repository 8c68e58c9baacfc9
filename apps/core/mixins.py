# apps/core/mixins.py
"""
Reusable mixins for ViewSets to reduce code duplication.
These mixins provide common functionality across different ViewSets.
"""
from rest_framework import filters
from django_filters.rest_framework import DjangoFilterBackend

from apps.core.exceptions import BusinessRequired


class StandardFilterMixin:
    """
    Provides standard filtering, searching, and ordering configuration.
    Apply this to ViewSets that need these features.
    """
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]


class BusinessScopedMixin:
    """
    Resolves the current tenant from the authenticated user and
    restricts the queryset to it. Records of other businesses behave
    exactly like missing ones.
    """
    business_field = 'business'

    def get_business(self):
        business = getattr(self.request.user, 'business', None)
        if business is None:
            raise BusinessRequired()
        return business

    def get_queryset(self):
        queryset = super().get_queryset()
        if getattr(self, 'swagger_fake_view', False):
            return queryset.none()
        return queryset.filter(**{self.business_field: self.get_business()})
