from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/accounts/", include("accounts.urls")),
    path("api/coins/", include("coins.urls")),
    path("api/billing/", include("coins.billing_urls")),
    path("api/chats/", include("chats.urls")),
    path("api/", include("calls.urls")),
]
