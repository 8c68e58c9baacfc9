# apps/table_config/views.py
"""
Server-side copy of the per-user table preferences.
"""
import logging

from rest_framework import serializers, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from .models import TableConfig
from .serializers import TableConfigSerializer

logger = logging.getLogger(__name__)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def table_config(request):
    """
    GET ?table_id=clients: {"config": {...}} or {"config": null}
    POST {"table_id": "clients", "config": {...}}: create or replace
    """
    if request.method == 'GET':
        table_id = request.query_params.get('table_id')
        if not table_id:
            raise serializers.ValidationError({'table_id': ['This parameter is required']})

        config = TableConfig.objects.filter(user=request.user, table_id=table_id).first()
        return Response({'config': config.config if config else None})

    serializer = TableConfigSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    config, created = serializer.save_for_user(request.user)

    logger.debug("Table config %s saved for user %s", config.table_id, request.user.pk)
    return Response(
        {'id': config.id, 'message': 'Configuration saved successfully'},
        status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
    )
