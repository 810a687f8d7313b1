from django.contrib import admin

from .models import Chat, Message, MessageFile


@admin.register(Chat)
class ChatAdmin(admin.ModelAdmin):
    list_display = ("id", "participant_1", "participant_2", "last_message_time", "unread_count_p1", "unread_count_p2")
    raw_id_fields = ("participant_1", "participant_2", "last_message")


class MessageFileInline(admin.TabularInline):
    model = MessageFile
    extra = 0
    readonly_fields = ("kind", "path", "mime_type", "size", "created_at")


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ("id", "chat", "sender", "receiver", "message_type", "price", "status", "created_at")
    list_filter = ("message_type", "sender_type", "status")
    raw_id_fields = ("chat", "sender", "receiver", "reply_to")
    readonly_fields = ("is_paid", "price")
    inlines = [MessageFileInline]
