from .base import *

SECRET_KEY = "test-secret-key"
DEBUG = False

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
    }
}

CHANNEL_LAYERS = {"default": {"BACKEND": "channels.layers.InMemoryChannelLayer"}}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

COINCHAT_PURCHASE_VERIFIER = "coins.tests.fakes.FakePurchaseVerifier"
COINCHAT_REPLY_GENERATOR = "chats.tests.fakes.FakeReplyGenerator"
COINCHAT_PUSH_SENDER = "notifications.tests.fakes.RecordingPushSender"
COINCHAT_FILE_STORAGE = "chats.tests.fakes.MemoryFileStorage"
COINCHAT_RUN_TASKS_INLINE = True

GOOGLE_PLAY_PACKAGE_NAME = "com.example.coinchat"
SKIP_ADMOB_SIGNATURE_VERIFICATION = False

LOGGING["loggers"] = {}
