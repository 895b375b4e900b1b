from django.contrib import admin

from .models import Learner


@admin.register(Learner)
class LearnerAdmin(admin.ModelAdmin):
    list_display = ("user_id", "email", "name", "created_at")
    search_fields = ("user_id", "email", "name")
    ordering = ("user_id",)
    readonly_fields = ("created_at",)
