from __future__ import annotations

import logging

from django.http import HttpRequest

from account_onboarding.schemas import AccountResponse
from account_onboarding_app.views.utils import json_response, parse_json_body, service_view


logger = logging.getLogger("account_onboarding.audit")


@service_view("GET", "POST")
async def accounts(request: HttpRequest, services, context):
    if request.method == "GET":
        records = await services.accounts.list_accounts(context)
        return json_response([AccountResponse.from_record(record).model_dump(mode="json") for record in records])

    payload = await parse_json_body(request)
    record = await services.accounts.create_account(context, payload)
    logger.info("account_created", extra={"user_id": context.principal_id, "account": record.id})
    return json_response(AccountResponse.from_record(record).model_dump(mode="json"), status=201)


@service_view("GET", "PUT")
async def account_detail(request: HttpRequest, services, context, account_uid: str):
    if request.method == "GET":
        record = await services.accounts.get_account(context, account_uid)
    else:
        payload = await parse_json_body(request)
        record = await services.accounts.update_account(context, account_uid, payload)
    return json_response(AccountResponse.from_record(record).model_dump(mode="json"))


__all__ = ["accounts", "account_detail"]
