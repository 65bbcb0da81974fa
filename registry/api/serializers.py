from rest_framework import serializers

from registry.models import Account, RegistrationCode, RegistrationRequest
from registry.services.approval_service import Approve, Reject


class RegistrationSubmitSerializer(serializers.ModelSerializer):
    """Applicant intake form. Status, reference number and senior flag are set by the service."""

    role = serializers.ChoiceField(choices=Account.ROLE_CHOICES, default=Account.RESIDENT)
    email = serializers.EmailField(required=False, allow_null=True, allow_blank=True)
    household_number = serializers.CharField(
        required=False, allow_null=True, allow_blank=True, max_length=50
    )
    registration_code = serializers.CharField(
        required=False, allow_null=True, allow_blank=True, write_only=True
    )

    class Meta:
        model = RegistrationRequest
        fields = [
            "first_name",
            "last_name",
            "email",
            "contact_no",
            "birthdate",
            "gender",
            "address",
            "photo_url",
            "role",
            "is_head_of_family",
            "head_id",
            "household_number",
            "registration_code",
            "is_renter",
            "is_4ps_member",
            "is_pwd",
            "is_indigenous",
            "is_slp_beneficiary",
        ]
        extra_kwargs = {
            "first_name": {"required": True, "allow_blank": False},
            "last_name": {"required": True, "allow_blank": False},
            "contact_no": {"required": True, "allow_blank": False},
            "birthdate": {"required": True},
        }


class RegistrationRequestSerializer(serializers.ModelSerializer):
    """Registration request as shown to reviewers."""

    approvedBy = serializers.SlugRelatedField(source="approved_by", slug_field="username", read_only=True)
    rejectedBy = serializers.SlugRelatedField(source="rejected_by", slug_field="username", read_only=True)

    class Meta:
        model = RegistrationRequest
        fields = [
            "id",
            "reference_number",
            "first_name",
            "last_name",
            "email",
            "contact_no",
            "birthdate",
            "gender",
            "address",
            "photo_url",
            "role",
            "is_head_of_family",
            "head_id",
            "household_number",
            "is_renter",
            "is_4ps_member",
            "is_pwd",
            "is_indigenous",
            "is_slp_beneficiary",
            "is_senior",
            "status",
            "submitted_at",
            "approved_at",
            "approvedBy",
            "rejected_at",
            "rejectedBy",
            "rejection_reason",
        ]
        read_only_fields = fields


class DecisionSerializer(serializers.Serializer):
    """
    ``{"request_id": 12, "approve": false, "reason": "..."}``

    Set ``require_reason`` in the serializer context to make a reason
    mandatory for rejections.
    """

    request_id = serializers.IntegerField(min_value=1)
    approve = serializers.BooleanField()
    reason = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=1000)

    def validate(self, attrs):
        reason = (attrs.get("reason") or "").strip()
        if not attrs["approve"] and self.context.get("require_reason") and not reason:
            raise serializers.ValidationError({"reason": "A reason is required when rejecting."})
        attrs["reason"] = reason or None
        return attrs

    def to_decision(self):
        data = self.validated_data
        return Approve() if data["approve"] else Reject(reason=data["reason"])


class LoginSerializer(serializers.Serializer):
    username = serializers.CharField()
    password = serializers.CharField(trim_whitespace=False)


class ChangePasswordSerializer(serializers.Serializer):
    current_password = serializers.CharField(trim_whitespace=False)
    new_password = serializers.CharField(trim_whitespace=False)


class ResetPasswordSerializer(serializers.Serializer):
    username = serializers.CharField()
    household_number = serializers.CharField()
    new_password = serializers.CharField(trim_whitespace=False)


class AdminRegistrationSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=150)
    last_name = serializers.CharField(max_length=150)
    username = serializers.CharField(max_length=255)
    password = serializers.CharField(trim_whitespace=False)
    contact_no = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    email = serializers.EmailField(required=False, allow_blank=True, allow_null=True)


class RegistrationCodeSerializer(serializers.ModelSerializer):
    usedBy = serializers.SerializerMethodField()

    class Meta:
        model = RegistrationCode
        fields = ["id", "code", "owner_name", "is_used", "usedBy", "created_at"]
        read_only_fields = ["id", "code", "is_used", "usedBy", "created_at"]

    def get_usedBy(self, obj):
        if obj.used_by is None:
            return None
        return {
            "resident_id": obj.used_by.pk,
            "first_name": obj.used_by.first_name,
            "last_name": obj.used_by.last_name,
        }
