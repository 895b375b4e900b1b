"""
Flashcard Service Layer

Core learning-progress logic for vocabulary flashcards:
- Next card selection (deterministic ranking, no interval scheduling)
- Review recording (progress row + review ledger in one transaction)
- Progress statistics per learner and per part of speech
- Ledger audit (progress counters recomputed from the review ledger)

IMPORTANT:
1. Every progress change MUST go through FlashcardService.record_review().
2. Never cache FlashcardProgress rows between requests.
3. record_review() relies on transaction.atomic() + select_for_update() and
   F() increments, so concurrent reviews of one card never lose an update.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from django.db import transaction
from django.db.models import Count, F, FilteredRelation, Q
from django.utils import timezone

from core.exceptions import NotFoundError, ValidationError
from core.models import Learner
from core.storage import storage_errors
from vocab.metadata import build_metadata
from vocab.models import (
    FlashcardProgress,
    FlashcardReview,
    PartOfSpeech,
    ReviewResult,
    VocabularyEntry,
)
from vocab.visibility import visible_to

logger = logging.getLogger(__name__)


# =====================================================
# INPUT NORMALIZATION
# =====================================================
PART_OF_SPEECH_ALIASES = {
    "noun": PartOfSpeech.NOUN,
    "n": PartOfSpeech.NOUN,
    "verb": PartOfSpeech.VERB,
    "v": PartOfSpeech.VERB,
    "adjective": PartOfSpeech.ADJECTIVE_ADVERB,
    "adj": PartOfSpeech.ADJECTIVE_ADVERB,
    "adverb": PartOfSpeech.ADJECTIVE_ADVERB,
    "adv": PartOfSpeech.ADJECTIVE_ADVERB,
    "adjective_adverb": PartOfSpeech.ADJECTIVE_ADVERB,
}

RESULT_ALIASES = {
    "mastered": ReviewResult.MASTERED,
    "m": ReviewResult.MASTERED,
    "learning": ReviewResult.LEARNING,
    "l": ReviewResult.LEARNING,
    "again": ReviewResult.LEARNING,
    "review": ReviewResult.LEARNING,
}

STATUS_ALL = "all"
STATUS_NEW = "new"
STATUS_FILTERS = (STATUS_ALL, STATUS_NEW, ReviewResult.LEARNING, ReviewResult.MASTERED)


def normalize_part_of_speech(value: str) -> str:
    normalized = value.strip().lower()
    try:
        return PART_OF_SPEECH_ALIASES[normalized]
    except KeyError:
        raise ValidationError(f"unsupported part_of_speech '{normalized}'", value=value) from None


def normalize_result(value: str) -> str:
    normalized = value.strip().lower()
    try:
        return RESULT_ALIASES[normalized]
    except KeyError:
        raise ValidationError(f"unsupported review status '{normalized}'", value=value) from None


def normalize_status_filter(value: Optional[str]) -> str:
    if value is None:
        return STATUS_ALL
    normalized = value.strip().lower() or STATUS_ALL
    if normalized not in STATUS_FILTERS:
        raise ValidationError(f"unsupported filter status '{normalized}'", value=value)
    return normalized


def status_condition(status: str) -> Q:
    """
    Filter on the learner's own progress row (joined as `my_progress`).
    A missing row means "new".
    """
    if status == STATUS_NEW:
        return Q(my_progress__isnull=True)
    if status == ReviewResult.MASTERED:
        return Q(my_progress__status=ReviewResult.MASTERED)
    if status == ReviewResult.LEARNING:
        return Q(my_progress__status=ReviewResult.LEARNING)
    # Default: never resurface mastered cards unless asked to.
    return Q(my_progress__isnull=True) | Q(my_progress__status=ReviewResult.LEARNING)


# =====================================================
# RESULT TYPES
# =====================================================
@dataclass(frozen=True)
class ProgressSnapshot:
    status: str
    times_seen: int
    times_mastered: int
    last_seen_at: Optional[datetime]


@dataclass(frozen=True)
class Flashcard:
    """
    A card to present: the entry plus the learner's progress on it.
    progress is None when the learner has never reviewed the entry.
    """
    entry: VocabularyEntry
    progress: Optional[ProgressSnapshot]

    @property
    def status(self) -> Optional[str]:
        return self.progress.status if self.progress else None

    @property
    def times_seen(self) -> int:
        return self.progress.times_seen if self.progress else 0

    @property
    def times_mastered(self) -> int:
        return self.progress.times_mastered if self.progress else 0

    @property
    def last_seen_at(self) -> Optional[datetime]:
        return self.progress.last_seen_at if self.progress else None

    @property
    def metadata(self) -> Optional[Dict[str, Any]]:
        return build_metadata(self.entry.part_of_speech, self.entry.extra)


def entries_with_progress(user_id: str, visibility: Optional[Q] = None):
    """
    Visible entries LEFT JOINed to this learner's progress rows as `my_progress`.
    (learner, entry) is unique, so each entry appears at most once.
    """
    if visibility is None:
        visibility = visible_to(user_id)
    return VocabularyEntry.objects.filter(visibility).annotate(
        my_progress=FilteredRelation(
            "progress_records",
            condition=Q(progress_records__learner=user_id),
        ),
    )


class FlashcardService:
    """
    Service handling flashcard selection, reviews and statistics.
    All methods are staticmethods; none keep state between calls.
    """

    @staticmethod
    def get_next_card(
        user_id: str,
        part_of_speech: Optional[str] = None,
        status: Optional[str] = None,
        visibility: Optional[Q] = None,
    ) -> Optional[Flashcard]:
        """
        Pick the single next card for a learner.

        Ranking (first row wins):
          1. times_seen ascending, never-seen entries first
          2. entry created_at ascending
          3. entry id ascending

        Args:
            user_id: Learner id
            part_of_speech: Optional filter, aliases accepted ('n', 'adj', ...)
            status: None/'all' (new + learning), 'new', 'learning' or 'mastered'
            visibility: Entry predicate, defaults to visible_to(user_id)

        Returns:
            Flashcard, or None when nothing matches the filters

        Raises:
            ValidationError: Unknown part_of_speech or status
            StorageError: Database failure
        """
        status_filter = normalize_status_filter(status)

        qs = entries_with_progress(user_id, visibility).filter(status_condition(status_filter))
        if part_of_speech is not None:
            qs = qs.filter(part_of_speech=normalize_part_of_speech(part_of_speech))

        qs = qs.annotate(
            progress_id=F("my_progress__id"),
            progress_status=F("my_progress__status"),
            progress_times_seen=F("my_progress__times_seen"),
            progress_times_mastered=F("my_progress__times_mastered"),
            progress_last_seen_at=F("my_progress__last_seen_at"),
        ).order_by(
            F("my_progress__times_seen").asc(nulls_first=True),
            "created_at",
            "id",
        )

        with storage_errors("next card selection"):
            entry = qs.first()

        if entry is None:
            return None

        progress = None
        if entry.progress_id is not None:
            progress = ProgressSnapshot(
                status=entry.progress_status,
                times_seen=entry.progress_times_seen,
                times_mastered=entry.progress_times_mastered,
                last_seen_at=entry.progress_last_seen_at,
            )
        return Flashcard(entry=entry, progress=progress)

    @staticmethod
    def record_review(
        user_id: str,
        entry_id: int,
        result: str,
        notes: Optional[str] = None,
    ) -> FlashcardProgress:
        """
        Record one review outcome.

        Inside a single transaction:
          1. Load the entry (NotFoundError if missing)
          2. Upsert the Learner row
          3. Lock or create the progress row, then bump its counters
          4. Append a FlashcardReview to the ledger

        Any failure rolls back every step.

        Args:
            user_id: Learner id
            entry_id: VocabularyEntry id
            result: 'mastered' or 'learning' (aliases: m, l, again, review)
            notes: Optional free text kept on the ledger row

        Returns:
            The progress row after the update

        Raises:
            ValidationError: Unknown result
            NotFoundError: Entry does not exist
            StorageError: Database failure
        """
        result = normalize_result(result)
        mastered = result == ReviewResult.MASTERED
        now = timezone.now()

        with storage_errors("review recording"):
            with transaction.atomic():
                entry = VocabularyEntry.objects.filter(pk=entry_id).first()
                if entry is None:
                    raise NotFoundError(f"vocabulary entry {entry_id} not found")

                learner = Learner.ensure(user_id)

                # Locks the row; a racing first insert ends up here via IntegrityError -> get
                progress, created = FlashcardProgress.objects.select_for_update().get_or_create(
                    learner=learner,
                    entry=entry,
                    defaults={
                        'status': result,
                        'times_seen': 1,
                        'times_mastered': 1 if mastered else 0,
                        'last_seen_at': now,
                        'created_at': now,
                        'updated_at': now,
                    }
                )

                if not created:
                    FlashcardProgress.objects.filter(pk=progress.pk).update(
                        status=result,
                        times_seen=F('times_seen') + 1,
                        times_mastered=F('times_mastered') + (1 if mastered else 0),
                        last_seen_at=now,
                        updated_at=now,
                    )
                    progress.refresh_from_db()

                FlashcardReview.objects.create(
                    learner=learner,
                    entry=entry,
                    result=result,
                    notes=notes,
                    reviewed_at=now,
                )

        logger.info(
            "Review recorded: learner=%s entry=%s result=%s times_seen=%s",
            user_id, entry_id, result, progress.times_seen,
        )
        return progress

    @staticmethod
    def get_stats(user_id: str, visibility: Optional[Q] = None) -> Dict[str, Any]:
        """
        Count visible entries by the learner's progress status.

        Returns:
            dict: {
                'total': int,
                'mastered': int,
                'learning': int,
                'new': int,
                'per_part_of_speech': [
                    {'part_of_speech', 'total', 'mastered', 'learning', 'new'}, ...
                ]
            }
            Groups are ordered by part_of_speech; empty groups are omitted.
        """
        rows = (
            entries_with_progress(user_id, visibility)
            .values('part_of_speech')
            .annotate(
                total=Count('id'),
                mastered=Count('id', filter=Q(my_progress__status=ReviewResult.MASTERED)),
                learning=Count('id', filter=Q(my_progress__status=ReviewResult.LEARNING)),
                new=Count('id', filter=Q(my_progress__isnull=True)),
            )
            .order_by('part_of_speech')
        )

        with storage_errors("stats aggregation"):
            per_part_of_speech = [
                {
                    'part_of_speech': row['part_of_speech'],
                    'total': row['total'],
                    'mastered': row['mastered'],
                    'learning': row['learning'],
                    'new': row['new'],
                }
                for row in rows
            ]

        # Top level is the sum of the groups so the two can never disagree
        return {
            'total': sum(g['total'] for g in per_part_of_speech),
            'mastered': sum(g['mastered'] for g in per_part_of_speech),
            'learning': sum(g['learning'] for g in per_part_of_speech),
            'new': sum(g['new'] for g in per_part_of_speech),
            'per_part_of_speech': per_part_of_speech,
        }

    @staticmethod
    def audit_progress(user_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Compare progress counters with the review ledger.

        Returns one dict per mismatching (learner, entry) pair:
            {'learner_id', 'entry_id', 'times_seen', 'ledger_seen',
             'times_mastered', 'ledger_mastered'}
        A pair with ledger rows but no progress row is reported with
        times_seen = times_mastered = None.
        """
        reviews = FlashcardReview.objects.all()
        progress_qs = FlashcardProgress.objects.all()
        if user_id is not None:
            reviews = reviews.filter(learner_id=user_id)
            progress_qs = progress_qs.filter(learner_id=user_id)

        with storage_errors("progress audit"):
            ledger = {
                (row['learner_id'], row['entry_id']): row
                for row in reviews.values('learner_id', 'entry_id').annotate(
                    seen=Count('id'),
                    mastered=Count('id', filter=Q(result=ReviewResult.MASTERED)),
                ).order_by()
            }
            progress_rows = list(
                progress_qs.values('learner_id', 'entry_id', 'times_seen', 'times_mastered')
            )

        mismatches = []
        for row in progress_rows:
            key = (row['learner_id'], row['entry_id'])
            counted = ledger.pop(key, {'seen': 0, 'mastered': 0})
            if row['times_seen'] != counted['seen'] or row['times_mastered'] != counted['mastered']:
                mismatches.append({
                    'learner_id': key[0],
                    'entry_id': key[1],
                    'times_seen': row['times_seen'],
                    'ledger_seen': counted['seen'],
                    'times_mastered': row['times_mastered'],
                    'ledger_mastered': counted['mastered'],
                })

        for (learner_id, entry_id), counted in ledger.items():
            mismatches.append({
                'learner_id': learner_id,
                'entry_id': entry_id,
                'times_seen': None,
                'ledger_seen': counted['seen'],
                'times_mastered': None,
                'ledger_mastered': counted['mastered'],
            })

        return sorted(mismatches, key=lambda m: (m['learner_id'], m['entry_id']))
