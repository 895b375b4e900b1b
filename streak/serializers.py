from rest_framework import serializers


class RecentDaySerializer(serializers.Serializer):
    date = serializers.DateField()
    checked = serializers.BooleanField()


class CheckinStatusSerializer(serializers.Serializer):
    today_checked = serializers.BooleanField()
    current_streak = serializers.IntegerField()
    total_days = serializers.IntegerField()
    last_date = serializers.DateField(allow_null=True)
    recent = RecentDaySerializer(many=True)
