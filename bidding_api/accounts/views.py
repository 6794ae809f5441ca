from rest_framework_simplejwt import views as jwt_views, authentication
from rest_framework import generics, permissions, status
from django.db import transaction
from rest_framework.response import Response
from drf_yasg.utils import swagger_auto_schema


from . import serializers as my_serializers
from . import throttles
from .models import CustomUser


class CustomTokenObtainPairView(jwt_views.TokenObtainPairView):
    serializer_class = my_serializers.CustomTokenObtainPairSerializer
    throttle_classes = [throttles.CredentialRateThrottle]


class RegistrationAPIView(generics.CreateAPIView):
    """
    Handles new user registration.

    Accepts a POST request with user details:
        - email, password, confirm_password, role (required)
        - name, description, avatar (optional)
    Creates a new user, and returns the user's data along with JWT access and
    refresh tokens.
    """
    serializer_class = my_serializers.RegistrationSerializer
    permission_classes = [permissions.AllowAny]
    authentication_classes = []
    throttle_classes = [throttles.CredentialRateThrottle]

    @swagger_auto_schema(
        operation_summary="Register a new user",
        responses={
            201: my_serializers.RegistrationSerializer,
            400: "Invalid input"
        }
    )
    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        with transaction.atomic():
            user = serializer.save()
            refresh = my_serializers.CustomTokenObtainPairSerializer.get_token(user)

        return Response(
            {
                'user': serializer.data,
                'refresh': str(refresh),
                'access': str(refresh.access_token)
            },
            status=status.HTTP_201_CREATED
        )


class UserProfileRetrieveUpdateAPIView(generics.RetrieveUpdateAPIView):
    """
    Allows authenticated users to retrieve and update their own profile.

    GET: Returns the profile of the currently authenticated user.
    PUT/PATCH: Updates name, description and avatar. The 'id', 'email',
    'role' and 'rating' fields are read-only.
    """
    serializer_class = my_serializers.UserProfileSerializer
    authentication_classes = [authentication.JWTAuthentication]
    permission_classes = [permissions.IsAuthenticated]

    @swagger_auto_schema(operation_summary="Retrieve user profile")
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    @swagger_auto_schema(operation_summary="Update user profile")
    def put(self, request, *args, **kwargs):
        return super().put(request, *args, **kwargs)

    @swagger_auto_schema(operation_summary="Partially update user profile")
    def patch(self, request, *args, **kwargs):
        return super().patch(request, *args, **kwargs)

    def get_object(self):
        return self.request.user


class UserDetailAPIView(generics.RetrieveAPIView):
    """Public profile of any active user, without credentials or audit data."""
    serializer_class = my_serializers.PublicUserSerializer
    authentication_classes = [authentication.JWTAuthentication]
    permission_classes = [permissions.IsAuthenticated]
    queryset = CustomUser.objects.filter(is_active=True)
    lookup_field = 'id'

    @swagger_auto_schema(operation_summary="Retrieve a user's public profile")
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)
