from django.contrib import admin

from .models import Business


@admin.register(Business)
class BusinessAdmin(admin.ModelAdmin):
    list_display = ('name', 'tax_id', 'city', 'status', 'created_at')
    list_filter = ('status',)
    search_fields = ('name', 'tax_id', 'email')
