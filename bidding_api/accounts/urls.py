from rest_framework_simplejwt.views import TokenRefreshView
from django.urls import path


from . import views as my_views


urlpatterns = [
    path('auth/token/', my_views.CustomTokenObtainPairView.as_view(), name='token-obtain-pair'),
    path('auth/token/refresh/', TokenRefreshView.as_view(), name='token-refresh'),
    path('auth/register/', my_views.RegistrationAPIView.as_view(), name='register'),
    path('auth/users/me/', my_views.UserProfileRetrieveUpdateAPIView.as_view(), name='profile-retrieve-update'),
    path('users/<int:id>/', my_views.UserDetailAPIView.as_view(), name='user-detail'),
]
