from rest_framework import serializers
from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from rest_framework.validators import UniqueValidator
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer
from django.contrib.auth import authenticate

User = get_user_model()

class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        user = authenticate(
            username=attrs.get("username"),
            password=attrs.get("password")
        )
        if not user:
            raise serializers.ValidationError({
                "detail": "Invalid username or password."
            })
        if not user.is_active:
            raise serializers.ValidationError({
                "detail": "This account is disabled."
            })
        if user.is_bot:
            raise serializers.ValidationError({
                "detail": "Bot accounts cannot sign in."
            })
        return super().validate(attrs)


class SignUpSerializer(serializers.ModelSerializer):
    username = serializers.CharField(
        validators=[
            UniqueValidator(
                queryset=User.objects.all(),
                message="This username is already taken."
            )
        ],
    )
    password = serializers.CharField(write_only=True)
    email = serializers.EmailField(required=False, allow_blank=True)
    age = serializers.IntegerField(min_value=18, required=False)
    gender = serializers.ChoiceField(choices=User.GENDER_CHOICES, required=False)

    class Meta:
        model = User
        fields = ['username', 'password', 'email', 'age', 'gender']

    def validate_password(self, value):
        validate_password(value)
        return value


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ('id', 'username', 'email', 'age', 'gender', 'profile_image', 'user_type', 'coins')
        read_only_fields = ('id', 'username', 'user_type', 'coins')

class UserUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ('email', 'age', 'gender', 'profile_image')
