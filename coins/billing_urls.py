from django.urls import path
from .views import GooglePlayVerifyView

urlpatterns = [
    path("google-play/verify/", GooglePlayVerifyView.as_view(), name="google-play-verify"),
]
