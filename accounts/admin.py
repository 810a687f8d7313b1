from django.contrib import admin

from .models import User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ("id", "username", "email", "user_type", "coins", "is_active", "date_joined")
    list_filter = ("user_type", "is_active")
    search_fields = ("username", "email")
    # 잔액은 원장(coins.services)으로만 조정한다
    readonly_fields = ("coins", "last_active", "date_joined")
    exclude = ("password",)
