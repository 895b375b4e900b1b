from django.contrib import admin
from import_export import resources
from import_export.admin import ExportMixin

from .models import FlashcardProgress, FlashcardReview, VocabularyEntry


class FlashcardReviewResource(resources.ModelResource):
    class Meta:
        model = FlashcardReview
        fields = (
            'id',
            'learner',
            'entry',
            'entry__word',
            'result',
            'notes',
            'reviewed_at',
        )
        export_order = fields


class FlashcardProgressResource(resources.ModelResource):
    class Meta:
        model = FlashcardProgress
        fields = (
            'learner',
            'entry',
            'entry__word',
            'status',
            'times_seen',
            'times_mastered',
            'last_seen_at',
        )
        export_order = fields


class ReadOnlyAdminMixin:
    """Rows here are written by FlashcardService only."""

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(VocabularyEntry)
class VocabularyEntryAdmin(admin.ModelAdmin):
    list_display = ("id", "word", "part_of_speech", "owner", "meaning", "created_at")
    list_filter = ("part_of_speech",)
    search_fields = ("word", "english", "meaning", "owner")
    ordering = ("created_at", "id")


@admin.register(FlashcardProgress)
class FlashcardProgressAdmin(ReadOnlyAdminMixin, ExportMixin, admin.ModelAdmin):
    resource_classes = [FlashcardProgressResource]
    list_display = ("learner", "entry", "status", "times_seen", "times_mastered", "last_seen_at")
    list_filter = ("status",)
    search_fields = ("learner__user_id", "entry__word")
    list_select_related = ("entry",)


@admin.register(FlashcardReview)
class FlashcardReviewAdmin(ReadOnlyAdminMixin, ExportMixin, admin.ModelAdmin):
    resource_classes = [FlashcardReviewResource]
    list_display = ("learner", "entry", "result", "reviewed_at")
    list_filter = ("result", "reviewed_at")
    search_fields = ("learner__user_id", "entry__word", "notes")
    list_select_related = ("entry",)
    ordering = ("-reviewed_at",)
