from __future__ import annotations

from django.urls import path

from . import views


app_name = "account_onboarding_app"

urlpatterns = [
    path("health", views.health, name="health"),
    path("accounts", views.accounts, name="accounts"),
    path("accounts/permissions/check", views.batch_check, name="batch_check"),
    path("accounts/<str:account_uid>", views.account_detail, name="account_detail"),
    path("accounts/<str:account_uid>/onboard", views.onboard_account, name="onboard_account"),
    path("accounts/<str:account_uid>/finish-onboarding", views.finish_onboarding, name="finish_onboarding"),
    path("accounts/<str:account_uid>/permissions/check", views.check_account, name="check_account"),
]
