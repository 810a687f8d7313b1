from django.contrib import admin

from .models import VideoCall


@admin.register(VideoCall)
class VideoCallAdmin(admin.ModelAdmin):
    list_display = ("id", "chat", "caller", "receiver", "status", "coins_charged", "duration", "created_at")
    list_filter = ("status", "call_type", "is_bot_call")
    raw_id_fields = ("chat", "caller", "receiver")
    readonly_fields = ("cost_per_minute", "coins_charged", "billed_minutes", "started_at", "ended_at", "duration")
