from django.urls import path

from . import views

app_name = "streak"

urlpatterns = [
    path("", views.CheckinView.as_view(), name="checkin"),
]
