"""Root URL configuration for the account onboarding Django project."""

from __future__ import annotations

from django.urls import include, path

urlpatterns = [
    path("api/", include("account_onboarding_app.urls")),
]
