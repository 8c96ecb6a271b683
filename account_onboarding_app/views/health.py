from __future__ import annotations

from django.http import HttpRequest, HttpResponseNotAllowed
from django.views.decorators.csrf import csrf_exempt

from account_onboarding_app.views.utils import json_response


@csrf_exempt
async def health(request: HttpRequest):
    if request.method != "GET":
        return HttpResponseNotAllowed(["GET"])

    from account_onboarding import get_version

    payload = {
        "status": "ok",
        "version": get_version(),
    }
    return json_response(payload)


__all__ = ["health"]
