# apps/users/serializers.py
from rest_framework import serializers
from .models import CustomUser


class UserSerializer(serializers.ModelSerializer):
    business_name = serializers.CharField(source='business.name', read_only=True, default=None)

    class Meta:
        model = CustomUser
        fields = ('id', 'username', 'email', 'first_name', 'last_name', 'phone_number',
                  'role', 'business', 'business_name')
        read_only_fields = ('role', 'business')
        ref_name = 'CustomUserSerializer'
