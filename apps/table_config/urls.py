# apps/table_config/urls.py
from django.urls import path
from .views import table_config

urlpatterns = [
    path('table-config/', table_config, name='table-config'),
]
