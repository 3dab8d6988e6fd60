from django.contrib import admin

from apps.accounting.models import Document


@admin.register(Document)
class DocumentAdmin(admin.ModelAdmin):
    list_display = ("reference", "document_type", "status", "company", "date", "total")
    list_filter = ("document_type", "status", "company")
    search_fields = ("reference",)
    readonly_fields = (
        "number",
        "reference",
        "locked_payload",
        "locked_at",
        "created_at",
        "updated_at",
    )

    def has_change_permission(self, request, obj=None):
        # Issued documents are legal records
        if obj is not None and obj.is_locked:
            return False
        return super().has_change_permission(request, obj)

    def has_delete_permission(self, request, obj=None):
        if obj is not None and obj.is_locked:
            return False
        return super().has_delete_permission(request, obj)
