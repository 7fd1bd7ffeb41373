from rest_framework import serializers


class LoginSerializer(serializers.Serializer):
    role = serializers.CharField(required=False, allow_blank=True)
    username = serializers.CharField(required=False, allow_blank=True)
    employee_id = serializers.CharField(required=False, allow_blank=True)
    school_id = serializers.CharField(required=False, allow_blank=True)
    patient_id = serializers.CharField(required=False, allow_blank=True)
    password = serializers.CharField(
        trim_whitespace=False,
        error_messages={'required': 'Password is required', 'blank': 'Password is required'},
    )

    def validate_role(self, v):
        return (v or '').strip().lower()


class AdminPinSerializer(serializers.Serializer):
    pin = serializers.CharField(allow_blank=True)


class ResetRequestSerializer(serializers.Serializer):
    contact = serializers.CharField(required=False, allow_blank=True)


class ResetPasswordSerializer(serializers.Serializer):
    contact = serializers.CharField(required=False, allow_blank=True)
    code = serializers.CharField(required=False, allow_blank=True)
    newPassword = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)


class PasswordChangeSerializer(serializers.Serializer):
    oldPassword = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)
    newPassword = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)


class AccountStatusSerializer(serializers.Serializer):
    userId = serializers.IntegerField(min_value=1)
    newStatus = serializers.ChoiceField(choices=['Active', 'Inactive'])
