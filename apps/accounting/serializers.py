from rest_framework import serializers

from apps.accounting.enums import DocumentType
from apps.accounting.models import Document


class LineItemSerializer(serializers.Serializer):
    description = serializers.CharField(required=False, allow_blank=True, default="")
    quantity = serializers.DecimalField(max_digits=12, decimal_places=4)
    unit_price = serializers.DecimalField(max_digits=14, decimal_places=4)
    vat_percent = serializers.DecimalField(
        max_digits=5, decimal_places=2, required=False, default=0
    )


class DocumentTotalsSerializer(serializers.Serializer):
    subtotal = serializers.CharField()
    vat_total = serializers.CharField()
    discount_amount = serializers.CharField()
    apportioned_vat = serializers.CharField()
    grand_total = serializers.CharField()


class TotalsPreviewRequestSerializer(serializers.Serializer):
    items = LineItemSerializer(many=True)
    discount_percent = serializers.DecimalField(
        max_digits=5,
        decimal_places=2,
        min_value=0,
        max_value=100,
        required=False,
        default=0,
    )


class TotalsPreviewResponseSerializer(serializers.Serializer):
    totals = DocumentTotalsSerializer()
    formatted = serializers.DictField(child=serializers.CharField())
    lines = serializers.ListField(child=serializers.DictField())


class DocumentCreateRequestSerializer(serializers.Serializer):
    document_type = serializers.ChoiceField(
        choices=[DocumentType.QUOTE, DocumentType.INVOICE]
    )
    customer_id = serializers.UUIDField(required=False, allow_null=True)
    customer = serializers.DictField(required=False)
    job_id = serializers.UUIDField(required=False, allow_null=True)
    items = LineItemSerializer(many=True, required=False, default=list)
    discount_percent = serializers.DecimalField(
        max_digits=5,
        decimal_places=2,
        min_value=0,
        max_value=100,
        required=False,
        default=0,
    )
    date = serializers.DateField(required=False)
    expiry_date = serializers.DateField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True)


class GasSafetyRequestSerializer(serializers.Serializer):
    """A completed CP12 ready to be locked."""

    job_id = serializers.UUIDField(required=False, allow_null=True)
    customer_id = serializers.UUIDField(required=False, allow_null=True)
    landlord = serializers.DictField(required=False, default=dict)
    tenant = serializers.DictField(required=False, default=dict)
    property_address = serializers.CharField(required=False, allow_blank=True, default="")
    appliances = serializers.ListField(
        child=serializers.DictField(), required=False, default=list
    )
    final_checks = serializers.DictField(required=False, default=dict)
    inspection_date = serializers.DateField(required=False, allow_null=True)
    next_due_date = serializers.DateField(required=False, allow_null=True)
    customer_signature = serializers.CharField(
        required=False, allow_blank=True, default=""
    )


class DocumentSerializer(serializers.ModelSerializer):
    is_locked = serializers.BooleanField(read_only=True)
    payload_kind = serializers.CharField(read_only=True, allow_null=True)
    render = serializers.SerializerMethodField()

    class Meta:
        model = Document
        fields = [
            "id",
            "document_type",
            "number",
            "reference",
            "status",
            "date",
            "expiry_date",
            "job",
            "customer",
            "subtotal",
            "total_vat",
            "total",
            "is_locked",
            "payload_kind",
            "locked_at",
            "render",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_render(self, obj: Document) -> dict:
        # Import here to avoid a circular import with the service layer
        from apps.accounting.services.document_service import DocumentService

        return DocumentService.render_data(obj)


class DocumentErrorResponseSerializer(serializers.Serializer):
    error = serializers.CharField()
    code = serializers.CharField(required=False)
    missing_fields = serializers.ListField(
        child=serializers.CharField(), required=False
    )
