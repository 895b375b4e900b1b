from datetime import date, timedelta
import logging

from django.db import transaction
from django.db.models import Max
from django.utils import timezone

from core.models import Learner
from core.storage import storage_errors

from .models import DailyCheckin

logger = logging.getLogger(__name__)

# Days covered by the `recent` presence list, ending today
RECENT_WINDOW_DAYS = 30
# How far back the streak scan looks; keeps it O(window) whatever the history size
STREAK_LOOKBACK_DAYS = 120


def get_today_for_user(user_id=None):
    """
    Today's date in the project TIME_ZONE.
    Per-learner timezones would be resolved here.
    """
    return timezone.localdate()


def checkin(user_id, today=None):
    """
    Mark today as checked for the learner, then return the fresh status.
    Calling it again on the same day is a no-op: the first checked_at is kept.
    """
    today = today or get_today_for_user(user_id)

    with storage_errors("check-in"):
        with transaction.atomic():
            learner = Learner.ensure(user_id)
            _, created = DailyCheckin.objects.get_or_create(
                learner=learner,
                day=today,
                defaults={'checked_at': timezone.now()},
            )

    if created:
        logger.info("Check-in recorded: learner=%s day=%s", user_id, today)
    return get_checkin_status(user_id, today=today)


def get_checkin_status(user_id, today=None):
    """
    Read-only check-in summary.

    Returns:
        dict: {
            'today_checked': bool,
            'current_streak': int,
            'total_days': int,
            'last_date': date or None,
            'recent': [{'date': date, 'checked': bool}, ...]  # oldest first
        }
    """
    today = today or get_today_for_user(user_id)
    window_start = today - timedelta(days=RECENT_WINDOW_DAYS - 1)
    checkins = DailyCheckin.objects.filter(learner_id=user_id)

    with storage_errors("check-in status"):
        total_days = checkins.count()
        last_date = checkins.aggregate(last=Max('day'))['last']
        recent_days = set(
            checkins.filter(day__gte=window_start).values_list('day', flat=True)
        )
        current_streak = count_streak(
            checkins.filter(day__gte=today - timedelta(days=STREAK_LOOKBACK_DAYS))
            .order_by('-day')
            .values_list('day', flat=True)
            .iterator(),
            today,
        )

    recent = []
    for offset in range(RECENT_WINDOW_DAYS):
        d = window_start + timedelta(days=offset)
        recent.append({'date': d, 'checked': d in recent_days})

    return {
        'today_checked': today in recent_days or last_date == today,
        'current_streak': current_streak,
        'total_days': total_days,
        'last_date': last_date,
        'recent': recent,
    }


def count_streak(days_desc, today: date) -> int:
    """
    Count consecutive checked days walking back from today.

    days_desc: checked days, most recent first.
    The streak starts strictly at today: no check-in today means 0,
    even if yesterday was checked. Days after today are skipped.
    """
    streak = 0
    expected = today
    for day in days_desc:
        if day == expected:
            streak += 1
            expected -= timedelta(days=1)
        elif day < expected:
            # gap
            break
    return streak
