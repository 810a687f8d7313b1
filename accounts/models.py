from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin, BaseUserManager
from django.db import models
from django.utils import timezone

class UserManager(BaseUserManager):
    def create_user(self, username, password=None, age=None, gender=None, **extra_fields):
        if not username:
            raise ValueError('The Username must be set')
        email = extra_fields.pop('email', None)
        if email:
            extra_fields['email'] = self.normalize_email(email)
        user = self.model(username=username, age=age, gender=gender, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_bot(self, username, **extra_fields):
        extra_fields.setdefault('user_type', User.TYPE_BOT)
        return self.create_user(username, password=None, **extra_fields)

    def create_superuser(self, username, password, age=None, gender=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)

        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True.')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True.')

        return self.create_user(username, password, age, gender, **extra_fields)

class User(AbstractBaseUser, PermissionsMixin):
    GENDER_CHOICES = [
        ('male', 'Male'),
        ('female', 'Female'),
    ]

    TYPE_REAL = 'real'
    TYPE_BOT = 'bot'
    TYPE_CHOICES = [
        (TYPE_REAL, 'Real'),
        (TYPE_BOT, 'Bot'),
    ]

    username = models.CharField(max_length=150, unique=True)
    email = models.EmailField(blank=True, default='')
    age = models.PositiveIntegerField(null=True, blank=True)
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES, null=True, blank=True)
    profile_image = models.ImageField(upload_to='profile_images/', null=True, blank=True)
    user_type = models.CharField(max_length=10, choices=TYPE_CHOICES, default=TYPE_REAL)

    # 코인 잔액: coins.services 의 debit/credit 으로만 변경한다 (행 잠금 + 원장 기록)
    coins = models.PositiveIntegerField(default=0)

    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)
    date_joined = models.DateTimeField(default=timezone.now)
    last_active = models.DateTimeField(null=True, blank=True)

    objects = UserManager()

    USERNAME_FIELD = 'username'
    REQUIRED_FIELDS = []

    @property
    def is_bot(self):
        return self.user_type == self.TYPE_BOT

    def __str__(self):
        return self.username
