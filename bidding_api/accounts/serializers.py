from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer
from rest_framework_simplejwt.exceptions import AuthenticationFailed
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoPasswordValidationError


from .models import CustomUser


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    """
    Serializer for user login and token generation.

    Fields:
        - email (required)
        - password (required)
    Issued tokens carry the user's id and role so the API and the websocket
    gate can resolve the caller without a profile lookup.
    """
    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['email'] = user.email
        token['role'] = user.role
        return token

    def validate(self, attrs):
        user = CustomUser.objects.filter(email=attrs.get('email')).first()
        if user is not None and not user.is_active:
            raise AuthenticationFailed("Your account is deactivated.")

        return super().validate(attrs)


class RegistrationSerializer(serializers.ModelSerializer):
    """
    Serializer for user registration.

    Fields :
        required: email, password, confirm_password, role
        optional: name, description, avatar
    Validates password confirmation and creates a new user.
    """
    password = serializers.CharField(required=True, write_only=True)
    confirm_password = serializers.CharField(required=True, write_only=True)

    class Meta:
        model = CustomUser
        fields = ['id', 'email', 'role', 'name', 'description', 'avatar', 'password', 'confirm_password']
        read_only_fields = ['id']
        extra_kwargs = {
            'email': {'required': True},
            'role': {'required': True},
        }

    def validate(self, attrs):
        if attrs['password'] != attrs['confirm_password']:
            raise serializers.ValidationError("Passwords do not match.")
        prospective_user = CustomUser(
            email=attrs.get('email'),
            name=attrs.get('name', ''),
            role=attrs.get('role'),
        )

        try:
            validate_password(attrs['password'], user=prospective_user)
        except DjangoPasswordValidationError as exc:
            raise serializers.ValidationError({'password': list(exc.messages)})

        return attrs

    def create(self, validated_data):
        validated_data.pop('confirm_password')
        return CustomUser.objects.create_user(**validated_data)


class UserProfileSerializer(serializers.ModelSerializer):
    """
    Serializer for the authenticated user's own profile.

    Fields:
        read-only: id, email, role, rating
        - name, description, avatar
    """
    class Meta:
        model = CustomUser
        fields = ('id', 'email', 'role', 'name', 'description', 'avatar', 'rating', 'created_at')
        read_only_fields = ('id', 'email', 'role', 'rating', 'created_at')


class PublicUserSerializer(serializers.ModelSerializer):
    """
    Serializer for lightweight user references.

    Used when embedding buyers and sellers in project, bid and chat payloads.
    """
    class Meta:
        model = CustomUser
        fields = ['id', 'name', 'email', 'role', 'avatar', 'rating']
        read_only_fields = fields
