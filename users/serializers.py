from rest_framework import serializers
from django.contrib.auth import get_user_model
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

User = get_user_model()

class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = [
            'id', 'email', 'phone_number', 'student_name', 'student_grade',
            'school_name', 'is_profile_complete',
        ]
        read_only_fields = ['id', 'email', 'is_profile_complete']

class RegisterSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, min_length=8)

    class Meta:
        model = User
        fields = ['email', 'phone_number', 'student_name', 'student_grade', 'school_name', 'password']

    def create(self, validated_data):
        password = validated_data.pop('password')
        return User.objects.create_user(
            username=validated_data['email'],
            password=password,
            **validated_data
        )

class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        data = super().validate(attrs)
        data['user'] = UserSerializer(self.user).data
        return data
