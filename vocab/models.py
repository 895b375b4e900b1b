from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q
from django.utils import timezone


class PartOfSpeech(models.TextChoices):
    NOUN = 'noun', 'Noun'
    VERB = 'verb', 'Verb'
    ADJECTIVE_ADVERB = 'adjective_adverb', 'Adjective / adverb'


class ReviewResult(models.TextChoices):
    LEARNING = 'learning', 'Learning'
    MASTERED = 'mastered', 'Mastered'


class VocabularyEntry(models.Model):
    """
    One vocabulary item from the shared content pool.
    owner = None: visible to every learner; otherwise only to that learner.
    Written by content tooling, read-only for the flashcard engine.
    """
    word = models.CharField("Word", max_length=200)
    part_of_speech = models.CharField(
        max_length=20,
        choices=PartOfSpeech.choices,
        db_index=True,
    )
    owner = models.CharField(
        max_length=128,
        null=True,
        blank=True,
        db_index=True,
        help_text="Learner id of the owner; empty for global entries",
    )

    english = models.CharField("English", max_length=255, blank=True, null=True)
    meaning = models.CharField("Meaning", max_length=255, blank=True, null=True)
    examples = models.TextField("Examples", blank=True, null=True)
    themes = models.CharField("Themes", max_length=255, blank=True, null=True)

    # gender/plural for nouns, conjugation forms for verbs, comparison forms for adjectives
    extra = models.JSONField(blank=True, null=True)

    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        verbose_name = "Vocabulary entry"
        verbose_name_plural = "Vocabulary entries"
        ordering = ['created_at', 'id']
        constraints = [
            models.CheckConstraint(
                condition=Q(part_of_speech__in=PartOfSpeech.values),
                name="vocab_entry_part_of_speech_valid",
            ),
        ]

    def __str__(self):
        return f"{self.word} ({self.part_of_speech})"


class FlashcardProgress(models.Model):
    """
    Progress of one learner on one entry.
    No row means the entry is still new for that learner.
    Only FlashcardService.record_review writes here.
    """
    learner = models.ForeignKey(
        "core.Learner",
        on_delete=models.CASCADE,
        related_name="flashcard_progress",
    )
    entry = models.ForeignKey(
        VocabularyEntry,
        on_delete=models.CASCADE,
        related_name="progress_records",
    )

    status = models.CharField(max_length=10, choices=ReviewResult.choices)
    times_seen = models.PositiveIntegerField(default=0)
    times_mastered = models.PositiveIntegerField(default=0)
    last_seen_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        unique_together = ("learner", "entry")
        verbose_name = "Flashcard progress"
        verbose_name_plural = "Flashcard progress"
        constraints = [
            models.CheckConstraint(
                condition=Q(status__in=ReviewResult.values),
                name="flashcard_progress_status_valid",
            ),
            models.CheckConstraint(
                condition=Q(times_mastered__lte=F("times_seen")),
                name="flashcard_progress_mastered_lte_seen",
            ),
        ]

    def __str__(self):
        return f"{self.learner_id} - {self.entry_id} ({self.status}, seen {self.times_seen})"


class FlashcardReview(models.Model):
    """
    Review ledger: one row per recorded review.

    Immutable: rows are never updated or deleted, so progress counters
    can always be checked against it (see the audit_progress command).
    """
    learner = models.ForeignKey(
        "core.Learner",
        on_delete=models.CASCADE,
        related_name="flashcard_reviews",
    )
    entry = models.ForeignKey(
        VocabularyEntry,
        on_delete=models.CASCADE,
        related_name="reviews",
    )
    result = models.CharField(max_length=10, choices=ReviewResult.choices)
    notes = models.TextField(blank=True, null=True)

    # No auto_now so the timestamp can never be rewritten
    reviewed_at = models.DateTimeField(default=timezone.now, editable=False)

    class Meta:
        verbose_name = "Flashcard review"
        verbose_name_plural = "Flashcard reviews"
        ordering = ['-reviewed_at', '-id']
        indexes = [
            models.Index(fields=['learner', 'entry'], name='idx_review_learner_entry'),
            models.Index(fields=['reviewed_at'], name='idx_review_reviewed_at'),
        ]

    def __str__(self):
        return f"{self.learner_id}: {self.entry_id} -> {self.result}"

    def save(self, *args, **kwargs):
        if self.pk is not None:
            raise ValidationError("FlashcardReview is immutable and cannot be modified.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("FlashcardReview is immutable and cannot be deleted.")
