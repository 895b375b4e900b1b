from django.contrib import admin

from .models import DailyCheckin


@admin.register(DailyCheckin)
class DailyCheckinAdmin(admin.ModelAdmin):
    list_display = ("learner", "day", "checked_at")
    list_filter = ("day",)
    search_fields = ("learner__user_id",)
    ordering = ("-day",)
