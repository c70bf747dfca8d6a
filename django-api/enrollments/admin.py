from django.contrib import admin

from enrollments.models import StoredDocument


@admin.register(StoredDocument)
class StoredDocumentAdmin(admin.ModelAdmin):
    list_display = ["collection", "key", "created_at", "updated_at"]
    list_filter = ["collection"]
    search_fields = ["key"]
    readonly_fields = ["created_at", "updated_at"]
