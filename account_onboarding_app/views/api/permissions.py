from __future__ import annotations

import logging

from django.http import HttpRequest

from account_onboarding.schemas import (
    AccountResponse,
    BatchCheckRequest,
    BatchCheckResponse,
    PermissionCheckResponse,
    TemplateInfoResponse,
)
from account_onboarding.services.accounts import validate_payload
from account_onboarding_app.views.utils import json_response, parse_json_body, service_view


logger = logging.getLogger("account_onboarding.audit")


@service_view("POST")
async def onboard_account(request: HttpRequest, services, context, account_uid: str):
    info = await services.stacks.prepare_onboarding(context, account_uid)
    response = TemplateInfoResponse(**info.__dict__)
    return json_response(response.model_dump(mode="json"))


@service_view("POST")
async def finish_onboarding(request: HttpRequest, services, context, account_uid: str):
    record = await services.permissions.finish_onboarding(context, account_uid)
    return json_response(AccountResponse.from_record(record).model_dump(mode="json"))


@service_view("POST")
async def check_account(request: HttpRequest, services, context, account_uid: str):
    result = await services.permissions.reconcile_account(context, account_uid)
    response = PermissionCheckResponse(status=result.status, info=result.info)
    return json_response(response.model_dump(mode="json"))


@service_view("POST")
async def batch_check(request: HttpRequest, services, context):
    model = validate_payload(BatchCheckRequest, await parse_json_body(request))
    result = await services.permissions.batch_check_account_permissions(context, batch_size=model.batch_size)
    logger.info(
        "permissions_batch_checked",
        extra={"user_id": context.principal_id, "total": len(result.status_by_account_id)},
    )
    response = BatchCheckResponse(
        status_by_account_id=result.status_by_account_id,
        errors_by_account_id=result.errors_by_account_id,
    )
    return json_response(response.model_dump(mode="json"))


__all__ = ["batch_check", "check_account", "finish_onboarding", "onboard_account"]
