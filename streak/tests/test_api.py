from datetime import timedelta

from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework.test import APIClient

from core.models import Learner
from streak.models import DailyCheckin


class CheckinApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.client.credentials(HTTP_X_USER_ID="u-api")
        self.url = reverse('streak:checkin')
        self.today = timezone.localdate()

    def test_get_does_not_check_in(self):
        response = self.client.get(self.url)

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertFalse(data["today_checked"])
        self.assertEqual(data["current_streak"], 0)
        self.assertIsNone(data["last_date"])
        self.assertEqual(len(data["recent"]), 30)
        self.assertFalse(DailyCheckin.objects.exists())

    def test_post_twice_keeps_one_row(self):
        first = self.client.post(self.url)
        second = self.client.post(self.url)

        self.assertEqual(first.status_code, 200)
        self.assertEqual(first.json(), second.json())
        self.assertTrue(second.json()["today_checked"])
        self.assertEqual(second.json()["total_days"], 1)
        self.assertEqual(second.json()["last_date"], self.today.isoformat())
        self.assertEqual(second.json()["recent"][-1], {"date": self.today.isoformat(), "checked": True})
        self.assertEqual(DailyCheckin.objects.count(), 1)

    def test_post_continues_streak(self):
        learner = Learner.ensure("u-api")
        for n in (1, 2):
            DailyCheckin.objects.create(learner=learner, day=self.today - timedelta(days=n))

        data = self.client.post(self.url).json()

        self.assertEqual(data["current_streak"], 3)

    def test_requires_identity(self):
        response = APIClient().post(self.url)

        self.assertEqual(response.status_code, 401)
        self.assertFalse(DailyCheckin.objects.exists())
