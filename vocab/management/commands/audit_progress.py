from django.core.management.base import BaseCommand, CommandError

from vocab.services.flashcard_service import FlashcardService


class Command(BaseCommand):
    help = 'Check flashcard progress counters against the review ledger (read-only)'

    def add_arguments(self, parser):
        parser.add_argument(
            '--user',
            dest='user_id',
            default=None,
            help='Only audit this learner id',
        )

    def handle(self, *args, **options):
        mismatches = FlashcardService.audit_progress(user_id=options['user_id'])

        if not mismatches:
            self.stdout.write(self.style.SUCCESS("Progress matches the review ledger."))
            return

        for m in mismatches:
            self.stdout.write(self.style.WARNING(
                f"learner={m['learner_id']} entry={m['entry_id']}: "
                f"times_seen={m['times_seen']} (ledger {m['ledger_seen']}), "
                f"times_mastered={m['times_mastered']} (ledger {m['ledger_mastered']})"
            ))
        raise CommandError(f"{len(mismatches)} progress record(s) disagree with the review ledger")
