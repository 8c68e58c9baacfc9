# apps/core/exceptions.py
from rest_framework.views import exception_handler
from rest_framework import status
from rest_framework.exceptions import APIException


class DomainError(APIException):
    """
    Base class for structured domain errors.
    Every error carries a kind (default_code), an optional field and a message.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid request'
    default_code = 'domain_error'
    field = None

    def __init__(self, message=None, field=None, code=None):
        super().__init__(detail=message, code=code)
        self.message = str(message or self.default_detail)
        if field is not None:
            self.field = field

    @property
    def kind(self):
        return self.default_code

    def as_payload(self):
        payload = {'message': self.message}
        if self.field:
            payload['field'] = self.field
        return payload


class UniquenessConflict(DomainError):
    """Raised when a legal identifier or VAT id is already used in the tenant"""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'A record with this value already exists'
    default_code = 'uniqueness_conflict'

    MESSAGES = {
        'legal_identifier': 'A client with this tax/national id already exists',
        'vat_id': 'A client with this VAT id already exists',
        'tax_id': 'A business with this tax id already exists',
    }

    def __init__(self, field, message=None):
        super().__init__(message or self.MESSAGES.get(field), field=field)


class NotFound(DomainError):
    """Raised for missing records and records owned by another tenant alike"""
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Not found'
    default_code = 'not_found'


class ReorderMismatch(DomainError):
    """Raised when a reorder request does not match the tenant's client set"""
    default_detail = 'Some clients do not exist or do not belong to your business'
    default_code = 'reorder_mismatch'
    field = 'ids'


class BusinessRequired(DomainError):
    """Raised when the authenticated user has no business yet"""
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'No business is associated with this account'
    default_code = 'business_required'


class BusinessAlreadyExists(DomainError):
    """Raised when a user who already owns a business runs the setup again"""
    default_detail = 'This account already has a business'
    default_code = 'business_already_exists'


def _flatten_errors(data):
    """Turn DRF validation output into {field: [messages]}"""
    if isinstance(data, dict):
        errors = {}
        for key, value in data.items():
            if isinstance(value, dict):
                for sub_key, sub_value in _flatten_errors(value).items():
                    errors[f'{key}.{sub_key}'] = sub_value
            elif isinstance(value, list):
                errors[key] = [str(item) for item in value]
            else:
                errors[key] = [str(value)]
        return errors
    if isinstance(data, list):
        return {'non_field_errors': [str(item) for item in data]}
    return {'non_field_errors': [str(data)]}


def custom_exception_handler(exc, context):
    """Custom exception handler to return all errors in {message: ""} format"""
    response = exception_handler(exc, context)

    if response is None:
        return response

    if isinstance(exc, DomainError):
        response.data = exc.as_payload()
        return response

    if response.status_code == status.HTTP_400_BAD_REQUEST:
        errors = _flatten_errors(response.data)
        first_field, first_messages = next(iter(errors.items()), ('non_field_errors', []))
        message = first_messages[0] if first_messages else 'Invalid data'
        if first_field != 'non_field_errors':
            message = f'{first_field}: {message}'
        response.data = {'message': message, 'errors': errors}
    elif response.status_code == status.HTTP_401_UNAUTHORIZED:
        response.data = {'message': 'Not authenticated'}
    elif response.status_code == status.HTTP_403_FORBIDDEN:
        response.data = {'message': str(getattr(exc, 'detail', '')) or 'Access denied'}
    elif response.status_code == status.HTTP_404_NOT_FOUND:
        response.data = {'message': 'Not found'}
    elif response.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        response.data = {'message': 'Method not allowed'}
    elif response.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        response.data = {'message': 'Server error'}

    return response
