from rest_framework import serializers

class LoginSerializer(serializers.Serializer):
    email = serializers.CharField(max_length=254)
    password = serializers.CharField(trim_whitespace=False)

    def validate_email(self, v):
        v = (v or '').strip().lower()
        if not v:
            raise serializers.ValidationError('Please provide email and password')
        return v

    def validate_password(self, v):
        if not v:
            raise serializers.ValidationError('Please provide email and password')
        return v


def user_payload(user) -> dict:
    hospital = user.hospital
    return {
        'id': user.id,
        'name': user.name,
        'email': user.email,
        'role': user.role,
        'hospital': hospital.id if hospital else None,
        'hospitalName': hospital.name if hospital else None,
    }
