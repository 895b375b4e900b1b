import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('core', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='VocabularyEntry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('word', models.CharField(max_length=200, verbose_name='Word')),
                ('part_of_speech', models.CharField(choices=[('noun', 'Noun'), ('verb', 'Verb'), ('adjective_adverb', 'Adjective / adverb')], db_index=True, max_length=20)),
                ('owner', models.CharField(blank=True, db_index=True, help_text='Learner id of the owner; empty for global entries', max_length=128, null=True)),
                ('english', models.CharField(blank=True, max_length=255, null=True, verbose_name='English')),
                ('meaning', models.CharField(blank=True, max_length=255, null=True, verbose_name='Meaning')),
                ('examples', models.TextField(blank=True, null=True, verbose_name='Examples')),
                ('themes', models.CharField(blank=True, max_length=255, null=True, verbose_name='Themes')),
                ('extra', models.JSONField(blank=True, null=True)),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
            ],
            options={
                'verbose_name': 'Vocabulary entry',
                'verbose_name_plural': 'Vocabulary entries',
                'ordering': ['created_at', 'id'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('part_of_speech__in', ['noun', 'verb', 'adjective_adverb'])), name='vocab_entry_part_of_speech_valid'),
                ],
            },
        ),
        migrations.CreateModel(
            name='FlashcardProgress',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('status', models.CharField(choices=[('learning', 'Learning'), ('mastered', 'Mastered')], max_length=10)),
                ('times_seen', models.PositiveIntegerField(default=0)),
                ('times_mastered', models.PositiveIntegerField(default=0)),
                ('last_seen_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('updated_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('entry', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='progress_records', to='vocab.vocabularyentry')),
                ('learner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='flashcard_progress', to='core.learner')),
            ],
            options={
                'verbose_name': 'Flashcard progress',
                'verbose_name_plural': 'Flashcard progress',
                'unique_together': {('learner', 'entry')},
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('status__in', ['learning', 'mastered'])), name='flashcard_progress_status_valid'),
                    models.CheckConstraint(condition=models.Q(('times_mastered__lte', models.F('times_seen'))), name='flashcard_progress_mastered_lte_seen'),
                ],
            },
        ),
        migrations.CreateModel(
            name='FlashcardReview',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('result', models.CharField(choices=[('learning', 'Learning'), ('mastered', 'Mastered')], max_length=10)),
                ('notes', models.TextField(blank=True, null=True)),
                ('reviewed_at', models.DateTimeField(default=django.utils.timezone.now, editable=False)),
                ('entry', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='reviews', to='vocab.vocabularyentry')),
                ('learner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='flashcard_reviews', to='core.learner')),
            ],
            options={
                'verbose_name': 'Flashcard review',
                'verbose_name_plural': 'Flashcard reviews',
                'ordering': ['-reviewed_at', '-id'],
                'indexes': [
                    models.Index(fields=['learner', 'entry'], name='idx_review_learner_entry'),
                    models.Index(fields=['reviewed_at'], name='idx_review_reviewed_at'),
                ],
            },
        ),
    ]
