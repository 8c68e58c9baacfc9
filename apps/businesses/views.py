# apps/businesses/views.py
"""
Business (tenant) endpoints: the setup wizard and the current business.
"""
import logging

from django.db import transaction
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.core.exceptions import BusinessAlreadyExists, BusinessRequired
from apps.core.permissions import IsAdmin
from .serializers import BusinessSerializer, BusinessSummarySerializer

logger = logging.getLogger(__name__)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def current_business(request):
    """
    GET: the business of the authenticated user, or {"business": null}.
    POST: business setup. Creates the business and attaches the user to it
    as its administrator. A user can only own one business.
    """
    user = request.user

    if request.method == 'GET':
        if user.business is None:
            return Response({'business': None})
        return Response({'business': BusinessSummarySerializer(user.business).data})

    if user.business_id is not None:
        raise BusinessAlreadyExists()

    serializer = BusinessSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    with transaction.atomic():
        business = serializer.save()
        user.business = business
        user.role = user.ROLE_ADMIN
        user.save(update_fields=['business', 'role'])

    logger.info("Business %s created by user %s", business.pk, user.pk)
    return Response(
        {
            'id': business.id,
            'name': business.name,
            'message': 'Business created successfully',
        },
        status=status.HTTP_201_CREATED
    )


@api_view(['PUT'])
@permission_classes([IsAdmin])
def update_business(request):
    """Edit the current business (administrators only)"""
    business = request.user.business
    if business is None:
        raise BusinessRequired()

    serializer = BusinessSerializer(business, data=request.data)
    serializer.is_valid(raise_exception=True)
    serializer.save()
    logger.info("Business %s updated by user %s", business.pk, request.user.pk)
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def check_business(request):
    """Whether the authenticated user already completed the business setup"""
    return Response({'has_business': request.user.business_id is not None})
