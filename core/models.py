from django.db import models


class Learner(models.Model):
    """
    Identity row for a learner resolved by the upstream auth gateway.
    The engine only upserts it so progress and check-ins have a valid FK.
    """
    user_id = models.CharField(max_length=128, primary_key=True)
    email = models.EmailField(blank=True, null=True)
    name = models.CharField(max_length=200, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["user_id"]
        verbose_name = "Learner"
        verbose_name_plural = "Learners"

    def __str__(self):
        return self.user_id

    @classmethod
    def ensure(cls, user_id):
        """
        Idempotent upsert by user_id.
        Use this instead of get_or_create directly so every write path behaves the same.
        """
        learner, _ = cls.objects.get_or_create(user_id=user_id)
        return learner
