import os

from .base import *

# --------------------------------
# 환경 변수
# --------------------------------
REQUIRED_ENV = [
    "SECRET_KEY",
    "POSTGRES_PASSWORD",
    "GOOGLE_PLAY_PACKAGE_NAME",
    "GOOGLE_PLAY_SERVICE_ACCOUNT_FILE",
]

for var in REQUIRED_ENV:
    if os.getenv(var) is None:
        raise ValueError(f"{var} is not set in environment")

SECRET_KEY = os.getenv("SECRET_KEY")
DEBUG = False

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.postgresql",
        "NAME": os.getenv("POSTGRES_DB", "coinchat"),
        "USER": os.getenv("POSTGRES_USER", "coinchat"),
        "PASSWORD": os.getenv("POSTGRES_PASSWORD", ""),
        "HOST": os.getenv("POSTGRES_HOST", "localhost"),
        "PORT": os.getenv("POSTGRES_PORT", "5432"),
        "ATOMIC_REQUESTS": False,
    }
}

SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
