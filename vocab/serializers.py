"""
DRF Serializers for the flashcard API.
"""

from rest_framework import serializers


class FlashcardSerializer(serializers.Serializer):
    """
    Serializer for a Flashcard (entry + the learner's progress).
    status/last_seen_at are null while the entry is still new.
    """
    entry_id = serializers.IntegerField(source='entry.id')
    word = serializers.CharField(source='entry.word')
    part_of_speech = serializers.CharField(source='entry.part_of_speech')
    meaning = serializers.CharField(source='entry.meaning', allow_null=True)
    english = serializers.CharField(source='entry.english', allow_null=True)
    examples = serializers.CharField(source='entry.examples', allow_null=True)
    themes = serializers.CharField(source='entry.themes', allow_null=True)
    status = serializers.CharField(allow_null=True)
    times_seen = serializers.IntegerField()
    times_mastered = serializers.IntegerField()
    last_seen_at = serializers.DateTimeField(allow_null=True)
    metadata = serializers.JSONField(allow_null=True)


class NextCardQuerySerializer(serializers.Serializer):
    """
    Query params for GET /next. Values are validated by the service
    so aliases ('n', 'adj', ...) keep working.
    """
    part_of_speech = serializers.CharField(required=False, allow_blank=False)
    status = serializers.CharField(required=False, allow_blank=True)


class ReviewRequestSerializer(serializers.Serializer):
    result = serializers.CharField()
    notes = serializers.CharField(required=False, allow_null=True, allow_blank=True)


class PartOfSpeechStatsSerializer(serializers.Serializer):
    part_of_speech = serializers.CharField()
    total = serializers.IntegerField()
    mastered = serializers.IntegerField()
    learning = serializers.IntegerField()
    new = serializers.IntegerField()


class StatsSerializer(serializers.Serializer):
    total = serializers.IntegerField()
    mastered = serializers.IntegerField()
    learning = serializers.IntegerField()
    new = serializers.IntegerField()
    per_part_of_speech = PartOfSpeechStatsSerializer(many=True)
