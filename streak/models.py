from django.db import models
from django.utils import timezone


class DailyCheckin(models.Model):
    """
    One presence marker per learner per calendar day.
    Day is taken in the project TIME_ZONE; unique (learner, day) makes repeats no-ops.
    """
    learner = models.ForeignKey(
        "core.Learner",
        on_delete=models.CASCADE,
        related_name="checkins",
    )
    day = models.DateField()
    checked_at = models.DateTimeField(default=timezone.now)

    class Meta:
        unique_together = ('learner', 'day')
        ordering = ['-day']

    def __str__(self):
        return f"{self.learner_id} - {self.day}"
