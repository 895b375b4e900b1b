"""
Resolve the learner id handed over by the auth gateway.

Credentials are validated upstream; this layer only trusts the header
configured in settings.LEARNER_ID_HEADER.
"""
from django.conf import settings
from rest_framework import authentication


class ResolvedLearner:
    """Minimal user object for DRF permission checks."""
    is_authenticated = True
    is_anonymous = False

    def __init__(self, user_id: str):
        self.user_id = user_id

    def __str__(self):
        return self.user_id


class LearnerHeaderAuthentication(authentication.BaseAuthentication):
    def authenticate(self, request):
        user_id = (request.headers.get(settings.LEARNER_ID_HEADER) or "").strip()
        if not user_id:
            return None
        return ResolvedLearner(user_id), None

    def authenticate_header(self, request):
        # Makes DRF answer 401 instead of 403 when the header is missing.
        return settings.LEARNER_ID_HEADER
