from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer
from django.contrib.auth import get_user_model

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    is_admin = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'first_name', 'last_name', 'is_admin', 'last_login']
        read_only_fields = fields

    def get_is_admin(self, obj):
        return obj.is_staff or obj.is_superuser


class LoginSerializer(TokenObtainPairSerializer):
    """Issue JWT tokens and return the user profile alongside them"""

    def validate(self, attrs):
        data = super().validate(attrs)
        data['user'] = UserSerializer(self.user).data
        return data
