from django.contrib import admin
from django.urls import path, include
from core.views import health

urlpatterns = [
    path('admin/', admin.site.urls),
    path("api/v1/flashcards/", include("vocab.urls", namespace="vocab")),
    path("api/v1/checkin", include("streak.urls", namespace="streak")),
    path("health", health, name="health"),
]
