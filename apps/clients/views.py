# apps/clients/views.py
import logging

from django_filters import rest_framework as filters
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.core.mixins import BusinessScopedMixin, StandardFilterMixin
from apps.core.pagination import StaticPagination
from apps.core.permissions import HasBusiness
from .models import Client
from .serializers import (
    ClientInputSerializer, ClientRecordSerializer, ReorderSerializer, serialize_view,
)
from .services import ClientService
from .variants import VARIANT_CHOICES

logger = logging.getLogger(__name__)


class ClientFilter(filters.FilterSet):
    """Filters for the clients table. `variant` matches the tag stored in the side channel."""
    variant = filters.ChoiceFilter(choices=VARIANT_CHOICES, method='filter_variant')
    status = filters.ChoiceFilter(choices=Client.STATUS_CHOICES)
    city = filters.CharFilter(field_name='city', lookup_expr='icontains')
    province = filters.CharFilter(field_name='province', lookup_expr='iexact')

    class Meta:
        model = Client
        fields = ['variant', 'status', 'category', 'city', 'province']

    def filter_variant(self, queryset, name, value):
        return queryset.filter(metadata__regex=rf'"variant"\s*:\s*"{value}"')


class ClientViewSet(BusinessScopedMixin, StandardFilterMixin, viewsets.ModelViewSet):
    """
    Clients of the current business.

    Endpoints:
        - GET /api/clients/ - Stored rows, manual order (active only unless ?status=)
        - POST /api/clients/ - Create from a company/individual form
        - GET /api/clients/{id}/ - Expanded company/individual view
        - PUT/PATCH /api/clients/{id}/ - Replace with a complete form
        - DELETE /api/clients/{id}/ - Deactivate (logical delete)
        - POST /api/clients/reorder/ - Persist drag-and-drop order
    """
    queryset = Client.objects.all()
    serializer_class = ClientRecordSerializer
    permission_classes = [IsAuthenticated, HasBusiness]
    pagination_class = StaticPagination
    filterset_class = ClientFilter
    search_fields = [
        'display_name',
        'legal_identifier',
        'vat_id',
        'email',
        'phone',
        'mobile',
        'city',
        'province',
        'metadata',
    ]
    ordering_fields = ['sort_position', 'display_name', 'created_at', 'city']
    ordering = ['sort_position', 'display_name']

    service_class = ClientService

    def get_service(self):
        return self.service_class()

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.action == 'list' and 'status' not in self.request.query_params:
            queryset = queryset.filter(status=Client.STATUS_ACTIVE)
        return queryset

    def get_serializer_class(self):
        if self.action in ['create', 'update', 'partial_update']:
            return ClientInputSerializer
        if self.action == 'reorder':
            return ReorderSerializer
        return ClientRecordSerializer

    def retrieve(self, request, *args, **kwargs):
        view = self.get_service().get(self.get_business(), kwargs['pk'])
        return Response(serialize_view(view))

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        service = self.get_service()
        business = self.get_business()
        record = service.create(business, serializer.validated_data, owner=request.user)
        return Response(serialize_view(service.get(business, record.pk)), status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        """PUT and PATCH both expect the complete form"""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        service = self.get_service()
        business = self.get_business()
        record = service.update(business, kwargs['pk'], serializer.validated_data)
        return Response(serialize_view(service.get(business, record.pk)))

    def partial_update(self, request, *args, **kwargs):
        return self.update(request, *args, **kwargs)

    def destroy(self, request, *args, **kwargs):
        self.get_service().deactivate(self.get_business(), kwargs['pk'])
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=['post'])
    def reorder(self, request):
        """Persist the order of the business's active clients"""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        self.get_service().reorder(self.get_business(), serializer.validated_data['ids'])
        return Response({'message': 'Clients reordered successfully'})
