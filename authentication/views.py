from rest_framework import generics, status, permissions
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework_simplejwt.views import TokenObtainPairView
from django.db import connection
from django.utils import timezone
from drf_spectacular.utils import extend_schema, OpenApiExample

from .serializers import LoginSerializer, UserSerializer

# =============== AUTHENTICATION VIEWS ===============


class CustomTokenObtainPairView(TokenObtainPairView):
    """
    JWT login for the back office. The response carries the user's profile so
    the client can tell admins (who may edit the menu) from read-only staff.
    """
    serializer_class = LoginSerializer

    @extend_schema(
        summary="Admin Login with JWT Token",
        request=LoginSerializer,
        responses={
            200: {
                'type': 'object',
                'properties': {
                    'refresh': {'type': 'string', 'description': 'JWT refresh token'},
                    'access': {'type': 'string', 'description': 'JWT access token'},
                    'user': {'type': 'object', 'description': 'User information'},
                }
            },
            401: {'description': 'Invalid credentials'},
        },
        examples=[
            OpenApiExample(
                'Admin Login',
                value={"username": "admin", "password": "SecurePassword123!"}
            )
        ]
    )
    def post(self, request, *args, **kwargs):
        return super().post(request, *args, **kwargs)


class MyProfileView(generics.RetrieveAPIView):
    serializer_class = UserSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_object(self):
        return self.request.user


@extend_schema(
    summary="Service health",
    responses={
        200: {
            'type': 'object',
            'properties': {
                'status': {'type': 'string'},
                'timestamp': {'type': 'string'},
                'database': {'type': 'string'},
            }
        }
    }
)
@api_view(['GET'])
@permission_classes([permissions.AllowAny])
def health_check(request):
    try:
        # Test database connection
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")

        return Response({
            'status': 'healthy',
            'timestamp': timezone.now().isoformat(),
            'database': 'connected',
        })
    except Exception as e:
        return Response({
            'status': 'unhealthy',
            'timestamp': timezone.now().isoformat(),
            'database': 'disconnected',
            'error': str(e)
        }, status=status.HTTP_503_SERVICE_UNAVAILABLE)
