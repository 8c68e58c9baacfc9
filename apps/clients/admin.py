from django.contrib import admin

from .models import Client


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ('display_name', 'business', 'legal_identifier', 'vat_id', 'status', 'sort_position')
    list_filter = ('status', 'category', 'business')
    search_fields = ('display_name', 'legal_identifier', 'vat_id', 'email')
    readonly_fields = ('metadata', 'created_at', 'updated_at', 'deactivated_at')
