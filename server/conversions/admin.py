from django.contrib import admin
from .models import ConversionRecord


@admin.register(ConversionRecord)
class ConversionRecordAdmin(admin.ModelAdmin):
    list_display = ('amount', 'source', 'result', 'target', 'created_at')
    list_filter = ('source', 'target')
    readonly_fields = ('amount', 'source', 'target', 'result', 'created_at')
