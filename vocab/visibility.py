from django.db.models import Q


def visible_to(user_id: str) -> Q:
    """
    Entries a learner may study: global ones (no owner) plus the learner's own.
    """
    return Q(owner__isnull=True) | Q(owner=user_id)
