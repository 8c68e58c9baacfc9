# apps/businesses/urls.py
from django.urls import path
from .views import current_business, update_business, check_business

urlpatterns = [
    path('business/', current_business, name='business'),
    path('business/edit/', update_business, name='business-edit'),
    path('check-business/', check_business, name='check-business'),
]
