from django.urls import path
from . import views

app_name = "vocab"

urlpatterns = [
    path("next", views.NextFlashcardView.as_view(), name="next"),
    path("stats", views.StatsView.as_view(), name="stats"),
    path("<int:entry_id>/review", views.ReviewView.as_view(), name="review"),
]
