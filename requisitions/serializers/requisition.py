import bleach
from rest_framework import serializers

from requisitions.models import RequisitionPriority, RequisitionStatus


def clean_text(v):
    return bleach.clean((v or '').strip(), strip=True)


class CleanCharField(serializers.CharField):
    """Free text stripped of markup before it reaches the services."""

    def to_internal_value(self, data):
        return clean_text(super().to_internal_value(data))


class RequisitionLineSerializer(serializers.Serializer):
    itemId = serializers.UUIDField()
    quantityRequested = serializers.IntegerField(min_value=1)
    notes = CleanCharField(required=False, allow_blank=True, max_length=2000)


class RequisitionCreateSerializer(serializers.Serializer):
    departmentId = serializers.CharField(max_length=20)
    priority = serializers.ChoiceField(choices=RequisitionPriority.choices, default=RequisitionPriority.NORMAL)
    neededByDate = serializers.DateField(required=False, allow_null=True)
    justification = CleanCharField(required=False, allow_blank=True, max_length=4000)
    notes = CleanCharField(required=False, allow_blank=True, max_length=4000)
    items = RequisitionLineSerializer(many=True, allow_empty=False)


class RequisitionUpdateSerializer(serializers.Serializer):
    priority = serializers.ChoiceField(choices=RequisitionPriority.choices, required=False)
    neededByDate = serializers.DateField(required=False, allow_null=True)
    justification = CleanCharField(required=False, allow_blank=True, max_length=4000)
    notes = CleanCharField(required=False, allow_blank=True, max_length=4000)
    items = RequisitionLineSerializer(many=True, allow_empty=False, required=False)


class ApprovalLineSerializer(serializers.Serializer):
    requisitionItemId = serializers.UUIDField()
    quantityApproved = serializers.IntegerField(min_value=0)
    substituteItemId = serializers.UUIDField(required=False, allow_null=True)
    substitutionApproved = serializers.BooleanField(default=False)


class RequisitionApproveSerializer(serializers.Serializer):
    approvalNotes = CleanCharField(required=False, allow_blank=True, max_length=4000)
    items = ApprovalLineSerializer(many=True, required=False)


class RequisitionRejectSerializer(serializers.Serializer):
    reason = CleanCharField(max_length=4000)


class FulfillmentLineSerializer(serializers.Serializer):
    requisitionItemId = serializers.UUIDField()
    quantityIssued = serializers.IntegerField(min_value=0)
    fromLocationId = serializers.UUIDField()
    lotNumber = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=64)
    serialNumber = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=64)


class RequisitionFulfillSerializer(serializers.Serializer):
    items = FulfillmentLineSerializer(many=True)
    notes = CleanCharField(required=False, allow_blank=True, max_length=4000)


class RequisitionCancelSerializer(serializers.Serializer):
    reason = CleanCharField(required=False, allow_blank=True, max_length=4000)


class RequisitionListQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=RequisitionStatus.choices, required=False)
    departmentId = serializers.CharField(max_length=20, required=False)
    priority = serializers.ChoiceField(choices=RequisitionPriority.choices, required=False)
    fromDate = serializers.DateTimeField(required=False)
    toDate = serializers.DateTimeField(required=False)
    search = serializers.CharField(max_length=64, required=False)
    page = serializers.IntegerField(min_value=1, required=False)
    pageSize = serializers.IntegerField(min_value=1, max_value=100, required=False)

    def validate(self, attrs):
        if attrs.get('fromDate') and attrs.get('toDate') and attrs['fromDate'] > attrs['toDate']:
            raise serializers.ValidationError('fromDate must not be after toDate')
        return attrs
