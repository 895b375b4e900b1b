from datetime import datetime, timedelta, timezone as dt_timezone
from unittest import mock

from django.core.exceptions import ValidationError as ModelValidationError
from django.db import DatabaseError
from django.db.models import Q
from django.test import TestCase, TransactionTestCase

from core.exceptions import NotFoundError, StorageError, ValidationError
from core.models import Learner
from core.tests.concurrency import require_shared_database, run_concurrently
from vocab.models import FlashcardProgress, FlashcardReview, VocabularyEntry
from vocab.services.flashcard_service import FlashcardService

BASE_TIME = datetime(2025, 1, 1, 12, 0, tzinfo=dt_timezone.utc)


def make_entry(word, part_of_speech="noun", owner=None, minutes=0, **kwargs):
    return VocabularyEntry.objects.create(
        word=word,
        part_of_speech=part_of_speech,
        owner=owner,
        created_at=BASE_TIME + timedelta(minutes=minutes),
        **kwargs,
    )


def set_progress(user_id, entry, status, times_seen, times_mastered=0):
    return FlashcardProgress.objects.create(
        learner=Learner.ensure(user_id),
        entry=entry,
        status=status,
        times_seen=times_seen,
        times_mastered=times_mastered,
        last_seen_at=BASE_TIME,
    )


class NextCardTests(TestCase):
    def setUp(self):
        self.user = "u-1"

    def test_empty_catalog_returns_none(self):
        self.assertIsNone(FlashcardService.get_next_card(self.user))

    def test_new_entry_beats_seen_entry(self):
        seen = make_entry("Haus", minutes=0)
        new = make_entry("Baum", minutes=10)
        set_progress(self.user, seen, "learning", times_seen=1)

        card = FlashcardService.get_next_card(self.user)

        self.assertEqual(card.entry.pk, new.pk)
        self.assertIsNone(card.progress)
        self.assertIsNone(card.status)
        self.assertEqual(card.times_seen, 0)

    def test_lower_times_seen_first(self):
        often = make_entry("oft", minutes=0)
        rarely = make_entry("selten", minutes=5)
        set_progress(self.user, often, "learning", times_seen=4)
        set_progress(self.user, rarely, "learning", times_seen=2)

        card = FlashcardService.get_next_card(self.user)

        self.assertEqual(card.entry.pk, rarely.pk)
        self.assertEqual(card.times_seen, 2)
        self.assertEqual(card.status, "learning")

    def test_older_entry_breaks_ties(self):
        make_entry("neu", minutes=30)
        older = make_entry("alt", minutes=1)

        self.assertEqual(FlashcardService.get_next_card(self.user).entry.pk, older.pk)

    def test_id_breaks_ties_for_same_created_at(self):
        first = make_entry("eins", minutes=0)
        make_entry("zwei", minutes=0)

        self.assertEqual(FlashcardService.get_next_card(self.user).entry.pk, first.pk)

    def test_repeated_calls_are_deterministic(self):
        for i in range(5):
            make_entry(f"wort{i}", minutes=i % 2)

        picks = {FlashcardService.get_next_card(self.user).entry.pk for _ in range(3)}

        self.assertEqual(len(picks), 1)

    def test_mastered_not_resurfaced_by_default(self):
        for i in range(3):
            set_progress(self.user, make_entry(f"w{i}", minutes=i), "mastered", 1, 1)

        self.assertIsNone(FlashcardService.get_next_card(self.user))
        self.assertIsNone(FlashcardService.get_next_card(self.user, status="all"))
        self.assertIsNone(FlashcardService.get_next_card(self.user, status=""))

    def test_status_filters(self):
        new = make_entry("neu", minutes=0)
        learning = make_entry("lernen", minutes=1)
        mastered = make_entry("gemeistert", minutes=2)
        set_progress(self.user, learning, "learning", 3)
        set_progress(self.user, mastered, "mastered", 1, 1)

        self.assertEqual(FlashcardService.get_next_card(self.user, status="new").entry.pk, new.pk)
        self.assertEqual(FlashcardService.get_next_card(self.user, status="learning").entry.pk, learning.pk)
        self.assertEqual(FlashcardService.get_next_card(self.user, status=" Mastered ").entry.pk, mastered.pk)

    def test_other_learners_progress_is_ignored(self):
        entry = make_entry("Tisch")
        set_progress("someone-else", entry, "mastered", 5, 5)

        card = FlashcardService.get_next_card(self.user)

        self.assertEqual(card.entry.pk, entry.pk)
        self.assertIsNone(card.progress)
        self.assertIsNone(FlashcardService.get_next_card(self.user, status="mastered"))

    def test_part_of_speech_filter_and_aliases(self):
        make_entry("Haus", "noun", minutes=0)
        verb = make_entry("gehen", "verb", minutes=1)
        adj = make_entry("schnell", "adjective_adverb", minutes=2)

        self.assertEqual(FlashcardService.get_next_card(self.user, part_of_speech="verb").entry.pk, verb.pk)
        self.assertEqual(FlashcardService.get_next_card(self.user, part_of_speech=" V ").entry.pk, verb.pk)
        self.assertEqual(FlashcardService.get_next_card(self.user, part_of_speech="adv").entry.pk, adj.pk)
        self.assertEqual(FlashcardService.get_next_card(self.user, part_of_speech="adjective").entry.pk, adj.pk)

    def test_invalid_filters_raise_validation_error(self):
        with self.assertRaisesMessage(ValidationError, "pronoun"):
            FlashcardService.get_next_card(self.user, part_of_speech="pronoun")
        with self.assertRaisesMessage(ValidationError, "due"):
            FlashcardService.get_next_card(self.user, status="due")

    def test_visibility_global_and_owned_only(self):
        make_entry("fremd", owner="other", minutes=0)
        own = make_entry("meins", owner=self.user, minutes=1)
        shared = make_entry("alle", minutes=2)

        first = FlashcardService.get_next_card(self.user)
        self.assertEqual(first.entry.pk, own.pk)

        set_progress(self.user, own, "mastered", 1, 1)
        self.assertEqual(FlashcardService.get_next_card(self.user).entry.pk, shared.pk)

    def test_visibility_predicate_can_be_injected(self):
        make_entry("global", minutes=0)
        own = make_entry("meins", owner=self.user, minutes=1)

        card = FlashcardService.get_next_card(self.user, visibility=Q(owner=self.user))

        self.assertEqual(card.entry.pk, own.pk)

    def test_storage_failure_is_wrapped(self):
        with mock.patch(
            "django.db.models.query.QuerySet.first",
            side_effect=DatabaseError("connection lost"),
        ):
            with self.assertRaises(StorageError) as ctx:
                FlashcardService.get_next_card(self.user)
        self.assertIsInstance(ctx.exception.__cause__, DatabaseError)


class RecordReviewTests(TestCase):
    def setUp(self):
        self.user = "u-1"
        self.entry = make_entry("Hund")

    def test_first_review_creates_progress_and_ledger_row(self):
        progress = FlashcardService.record_review(self.user, self.entry.pk, "mastered", notes="easy")

        self.assertEqual(progress.times_seen, 1)
        self.assertEqual(progress.times_mastered, 1)
        self.assertEqual(progress.status, "mastered")
        self.assertIsNotNone(progress.last_seen_at)
        review = FlashcardReview.objects.get(learner_id=self.user, entry=self.entry)
        self.assertEqual(review.result, "mastered")
        self.assertEqual(review.notes, "easy")
        self.assertEqual(review.reviewed_at, progress.last_seen_at)

    def test_first_learning_review(self):
        progress = FlashcardService.record_review(self.user, self.entry.pk, "learning")

        self.assertEqual((progress.times_seen, progress.times_mastered, progress.status), (1, 0, "learning"))

    def test_review_upserts_learner(self):
        self.assertFalse(Learner.objects.filter(user_id=self.user).exists())

        FlashcardService.record_review(self.user, self.entry.pk, "learning")
        FlashcardService.record_review(self.user, self.entry.pk, "learning")

        self.assertEqual(Learner.objects.filter(user_id=self.user).count(), 1)

    def test_counts_after_sequence_of_reviews(self):
        outcomes = ["learning", "mastered", "again", "m", "review", "MASTERED", "l"]
        for outcome in outcomes:
            FlashcardService.record_review(self.user, self.entry.pk, outcome)

        progress = FlashcardProgress.objects.get(learner_id=self.user, entry=self.entry)
        self.assertEqual(progress.times_seen, len(outcomes))
        self.assertEqual(progress.times_mastered, 3)
        self.assertEqual(progress.status, "learning")
        self.assertEqual(
            FlashcardReview.objects.filter(learner_id=self.user, entry=self.entry).count(),
            len(outcomes),
        )
        self.assertEqual(FlashcardProgress.objects.count(), 1)

    def test_status_follows_latest_outcome(self):
        FlashcardService.record_review(self.user, self.entry.pk, "mastered")
        progress = FlashcardService.record_review(self.user, self.entry.pk, "learning")

        self.assertEqual(progress.status, "learning")
        self.assertEqual(progress.times_mastered, 1)

    def test_learners_are_tracked_separately(self):
        FlashcardService.record_review("a", self.entry.pk, "mastered")
        FlashcardService.record_review("b", self.entry.pk, "learning")
        FlashcardService.record_review("b", self.entry.pk, "learning")

        self.assertEqual(FlashcardProgress.objects.get(learner_id="a").times_seen, 1)
        self.assertEqual(FlashcardProgress.objects.get(learner_id="b").times_seen, 2)

    def test_unknown_entry_raises_not_found(self):
        with self.assertRaises(NotFoundError):
            FlashcardService.record_review(self.user, 999999, "mastered")

        self.assertFalse(Learner.objects.filter(user_id=self.user).exists())
        self.assertEqual(FlashcardReview.objects.count(), 0)

    def test_unknown_result_raises_validation_error(self):
        with self.assertRaisesMessage(ValidationError, "perfect"):
            FlashcardService.record_review(self.user, self.entry.pk, "perfect")

        self.assertEqual(FlashcardProgress.objects.count(), 0)

    def test_ledger_failure_rolls_back_progress(self):
        FlashcardService.record_review(self.user, self.entry.pk, "learning")

        with mock.patch.object(
            FlashcardReview.objects, "create", side_effect=DatabaseError("disk full"),
        ):
            with self.assertRaises(StorageError):
                FlashcardService.record_review(self.user, self.entry.pk, "mastered")

        progress = FlashcardProgress.objects.get(learner_id=self.user, entry=self.entry)
        self.assertEqual((progress.times_seen, progress.times_mastered, progress.status), (1, 0, "learning"))
        self.assertEqual(FlashcardReview.objects.count(), 1)

    def test_ledger_failure_on_first_review_leaves_no_progress(self):
        with mock.patch.object(
            FlashcardReview.objects, "create", side_effect=DatabaseError("disk full"),
        ):
            with self.assertRaises(StorageError):
                FlashcardService.record_review(self.user, self.entry.pk, "mastered")

        self.assertFalse(FlashcardProgress.objects.exists())


class ReviewLedgerImmutabilityTests(TestCase):
    def setUp(self):
        entry = make_entry("Katze")
        FlashcardService.record_review("u-1", entry.pk, "learning", notes="first")
        self.review = FlashcardReview.objects.get()

    def test_update_is_refused(self):
        self.review.notes = "changed"
        with self.assertRaises(ModelValidationError):
            self.review.save()

    def test_delete_is_refused(self):
        with self.assertRaises(ModelValidationError):
            self.review.delete()
        self.assertEqual(FlashcardReview.objects.count(), 1)


class StatsTests(TestCase):
    def setUp(self):
        self.user = "u-1"

    def assertConsistent(self, stats):
        self.assertEqual(stats['total'], stats['mastered'] + stats['learning'] + stats['new'])
        for key in ('total', 'mastered', 'learning', 'new'):
            self.assertEqual(stats[key], sum(g[key] for g in stats['per_part_of_speech']))
        for group in stats['per_part_of_speech']:
            self.assertEqual(group['total'], group['mastered'] + group['learning'] + group['new'])

    def test_empty_catalog(self):
        stats = FlashcardService.get_stats(self.user)

        self.assertEqual(stats, {
            'total': 0, 'mastered': 0, 'learning': 0, 'new': 0, 'per_part_of_speech': [],
        })

    def test_counts_per_part_of_speech(self):
        n1 = make_entry("Haus", "noun")
        make_entry("Baum", "noun")
        v1 = make_entry("gehen", "verb")
        make_entry("fremd", "adjective_adverb", owner="other")
        set_progress(self.user, n1, "mastered", 2, 1)
        set_progress(self.user, v1, "learning", 1)
        set_progress("other", n1, "learning", 7)

        stats = FlashcardService.get_stats(self.user)

        self.assertEqual(
            (stats['total'], stats['mastered'], stats['learning'], stats['new']),
            (3, 1, 1, 1),
        )
        self.assertEqual(stats['per_part_of_speech'], [
            {'part_of_speech': 'noun', 'total': 2, 'mastered': 1, 'learning': 0, 'new': 1},
            {'part_of_speech': 'verb', 'total': 1, 'mastered': 0, 'learning': 1, 'new': 0},
        ])
        self.assertConsistent(stats)

    def test_owned_entries_are_counted_for_owner_only(self):
        make_entry("meins", "verb", owner=self.user)

        self.assertEqual(FlashcardService.get_stats(self.user)['total'], 1)
        self.assertEqual(FlashcardService.get_stats("other")['total'], 0)

    def test_consistency_with_many_learners(self):
        entries = [make_entry(f"w{i}", ("noun", "verb", "adjective_adverb")[i % 3], minutes=i) for i in range(9)]
        for i, entry in enumerate(entries):
            for user in ("u-1", "u-2", "u-3"):
                if (i + len(user)) % 2:
                    FlashcardService.record_review(user, entry.pk, "mastered" if i % 3 else "learning")

        for user in ("u-1", "u-2", "u-3", "nobody"):
            stats = FlashcardService.get_stats(user)
            self.assertEqual(stats['total'], 9)
            self.assertConsistent(stats)


class ConcreteScenarioTests(TestCase):
    def test_scenario(self):
        user = "u-1"
        e1 = make_entry("E1", "noun", minutes=10)
        e2 = make_entry("E2", "noun", minutes=0)
        set_progress(user, e2, "learning", times_seen=2)

        card = FlashcardService.get_next_card(user, part_of_speech="noun")
        self.assertEqual(card.entry.pk, e1.pk)

        FlashcardService.record_review(user, e1.pk, "mastered")
        progress = FlashcardProgress.objects.get(learner_id=user, entry=e1)
        self.assertEqual((progress.times_seen, progress.times_mastered, progress.status), (1, 1, "mastered"))
        self.assertEqual(FlashcardReview.objects.filter(entry=e1).count(), 1)

        stats = FlashcardService.get_stats(user)
        self.assertEqual(
            (stats['total'], stats['mastered'], stats['learning'], stats['new']),
            (2, 1, 1, 0),
        )


class AuditProgressTests(TestCase):
    def test_clean_ledger_has_no_mismatches(self):
        entry = make_entry("Maus")
        FlashcardService.record_review("u-1", entry.pk, "mastered")
        FlashcardService.record_review("u-1", entry.pk, "learning")

        self.assertEqual(FlashcardService.audit_progress(), [])

    def test_reports_counter_drift(self):
        entry = make_entry("Maus")
        FlashcardService.record_review("u-1", entry.pk, "mastered")
        FlashcardProgress.objects.filter(learner_id="u-1").update(times_seen=5)

        self.assertEqual(FlashcardService.audit_progress(user_id="u-1"), [{
            'learner_id': "u-1",
            'entry_id': entry.pk,
            'times_seen': 5,
            'ledger_seen': 1,
            'times_mastered': 1,
            'ledger_mastered': 1,
        }])
        self.assertEqual(FlashcardService.audit_progress(user_id="u-2"), [])

    def test_reports_progress_without_ledger(self):
        entry = make_entry("Maus")
        set_progress("u-1", entry, "learning", 2)

        mismatches = FlashcardService.audit_progress()

        self.assertEqual(len(mismatches), 1)
        self.assertEqual(mismatches[0]['ledger_seen'], 0)


class ConcurrentReviewTests(TransactionTestCase):
    def setUp(self):
        require_shared_database(self)
        self.user = "u-race"
        self.entry = make_entry("Katze")

    def review(self, result):
        return lambda: FlashcardService.record_review(self.user, self.entry.pk, result)

    def test_racing_first_reviews_create_one_progress_row(self):
        errors = run_concurrently(*[self.review("learning") for _ in range(6)])

        self.assertEqual(errors, [])
        progress = FlashcardProgress.objects.get(learner_id=self.user, entry=self.entry)
        self.assertEqual(progress.times_seen, 6)
        self.assertEqual(Learner.objects.filter(user_id=self.user).count(), 1)

    def test_no_lost_updates(self):
        rounds = 10
        errors = []
        for _ in range(rounds):
            errors += run_concurrently(self.review("learning"), self.review("mastered"))

        self.assertEqual(errors, [])
        progress = FlashcardProgress.objects.get(learner_id=self.user, entry=self.entry)
        ledger = FlashcardReview.objects.filter(learner_id=self.user, entry=self.entry)
        self.assertEqual(progress.times_seen, 2 * rounds)
        self.assertEqual(progress.times_mastered, rounds)
        self.assertEqual(ledger.count(), 2 * rounds)
        self.assertEqual(ledger.filter(result="mastered").count(), rounds)
        self.assertEqual(FlashcardService.audit_progress(self.user), [])
