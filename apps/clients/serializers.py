# apps/clients/serializers.py
from rest_framework import serializers

from .models import Client
from .projection import CompanyView
from .variants import COMPANY, INDIVIDUAL, VARIANT_CHOICES, resolve_variant


class AddressSerializer(serializers.Serializer):
    street = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)
    city = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)
    postal_code = serializers.CharField(max_length=20, required=False, allow_blank=True, allow_null=True)
    province = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)
    country = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)


def _optional_text(max_length=None):
    kwargs = {'required': False, 'allow_blank': True, 'allow_null': True}
    if max_length:
        kwargs['max_length'] = max_length
    return serializers.CharField(**kwargs)


class ClientInputSerializer(serializers.Serializer):
    """
    Create/update payload. Callers always send the complete form for the
    chosen variant; the payload is compressed into columns + side channel.
    """
    variant = serializers.ChoiceField(choices=VARIANT_CHOICES, required=False, allow_null=True)

    # Shared fields
    display_name = _optional_text(255)
    email = serializers.EmailField(required=False, allow_blank=True, allow_null=True)
    phone = _optional_text(30)
    mobile = _optional_text(30)
    website = _optional_text(255)
    vat_id = _optional_text(50)
    category = serializers.ChoiceField(choices=Client.CATEGORY_CHOICES, default=Client.CATEGORY_CLIENT)
    notes = _optional_text()
    contact_person = _optional_text(255)
    language = _optional_text(10)
    currency = _optional_text(3)
    registration_date = serializers.DateField(required=False, allow_null=True)
    birth_date = serializers.DateField(required=False, allow_null=True)

    # Company
    legal_name = _optional_text(255)
    tax_id = _optional_text(50)
    fiscal_address = AddressSerializer(required=False, allow_null=True)
    commercial_address = AddressSerializer(required=False, allow_null=True)
    same_as_fiscal = serializers.BooleanField(default=False)

    # Individual
    given_name = _optional_text(255)
    surname = _optional_text(255)
    national_id = _optional_text(50)
    address = AddressSerializer(required=False, allow_null=True)

    # Legacy (no variant)
    legal_identifier = _optional_text(50)

    def validate(self, attrs):
        variant = attrs.get('variant')
        errors = {}

        def blank(name):
            return not (attrs.get(name) or '').strip()

        if variant == COMPANY:
            if blank('display_name') and blank('legal_name'):
                errors['display_name'] = ['A name or legal name is required']
        elif variant == INDIVIDUAL:
            if blank('given_name'):
                errors['given_name'] = ['The given name is required']
        elif blank('display_name'):
            errors['display_name'] = ['The name is required']

        if errors:
            raise serializers.ValidationError(errors)
        return attrs


class ClientRecordSerializer(serializers.ModelSerializer):
    """Stored row as listed in the clients table, side channel included"""
    variant = serializers.SerializerMethodField()

    class Meta:
        model = Client
        fields = [
            'id', 'variant', 'display_name', 'legal_identifier', 'vat_id',
            'street', 'city', 'postal_code', 'province', 'country',
            'email', 'phone', 'mobile', 'website', 'status', 'category',
            'notes', 'contact_person', 'language', 'currency',
            'registration_date', 'birth_date', 'metadata', 'sort_position',
            'created_at', 'updated_at', 'deactivated_at',
        ]
        read_only_fields = fields

    def get_variant(self, obj):
        return resolve_variant(obj)


class ClientViewSerializer(serializers.Serializer):
    """Fields shared by both variant views"""
    id = serializers.UUIDField(read_only=True)
    variant = serializers.CharField(read_only=True)
    display_name = serializers.CharField(read_only=True)
    legal_identifier = serializers.CharField(read_only=True)
    vat_id = serializers.CharField(read_only=True)
    email = serializers.CharField(read_only=True)
    phone = serializers.CharField(read_only=True)
    mobile = serializers.CharField(read_only=True)
    website = serializers.CharField(read_only=True)
    status = serializers.CharField(read_only=True)
    category = serializers.CharField(read_only=True)
    notes = serializers.CharField(read_only=True)
    contact_person = serializers.CharField(read_only=True)
    language = serializers.CharField(read_only=True)
    currency = serializers.CharField(read_only=True)
    registration_date = serializers.DateField(read_only=True)
    birth_date = serializers.DateField(read_only=True)
    sort_position = serializers.IntegerField(read_only=True)
    created_at = serializers.DateTimeField(read_only=True)
    updated_at = serializers.DateTimeField(read_only=True)
    deactivated_at = serializers.DateTimeField(read_only=True)
    extra = serializers.DictField(read_only=True)


class CompanyViewSerializer(ClientViewSerializer):
    tax_id = serializers.CharField(read_only=True)
    legal_name = serializers.CharField(read_only=True)
    fiscal_address = AddressSerializer(read_only=True)
    commercial_address = AddressSerializer(read_only=True)
    same_as_fiscal = serializers.BooleanField(read_only=True)


class IndividualViewSerializer(ClientViewSerializer):
    national_id = serializers.CharField(read_only=True)
    given_name = serializers.CharField(read_only=True)
    surname = serializers.CharField(read_only=True)
    address = AddressSerializer(read_only=True)


def serialize_view(view):
    """Render a CompanyView or IndividualView"""
    serializer_class = CompanyViewSerializer if isinstance(view, CompanyView) else IndividualViewSerializer
    return serializer_class(view).data


class ReorderSerializer(serializers.Serializer):
    ids = serializers.ListField(child=serializers.CharField(), allow_empty=True)
