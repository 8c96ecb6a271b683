"""HTTP surface tests against in-memory services."""

import json
from contextlib import asynccontextmanager
from types import SimpleNamespace

import django
import pytest

django.setup()

from django.test import AsyncClient  # noqa: E402

from account_onboarding.repos import PermissionStatus  # noqa: E402
from account_onboarding.services import AccountService, AuthorizationService, PermissionService  # noqa: E402
from account_onboarding_app.views import utils  # noqa: E402
from tests.conftest import FakeStack, FakeTemplates, make_account  # noqa: E402


class StaticUsers:
    def __init__(self, *contexts):
        self.contexts = {context.principal_id: context for context in contexts}

    async def get_context(self, user_id):
        return self.contexts.get(user_id)


@pytest.fixture
def services(repo, clients, audit, settings, admin, guest):
    authorization = AuthorizationService()
    return SimpleNamespace(
        users=StaticUsers(admin, guest),
        accounts=AccountService(accounts=repo, authorization=authorization, audit=audit),
        permissions=PermissionService(
            accounts=repo,
            templates=FakeTemplates(),
            clients=clients,
            authorization=authorization,
            audit=audit,
            settings=settings,
        ),
    )


@pytest.fixture(autouse=True)
def patched_lifespan(monkeypatch, services):
    @asynccontextmanager
    async def lifespan(settings=None):
        yield services

    monkeypatch.setattr(utils, "service_lifespan", lifespan)


@pytest.fixture
def client():
    return AsyncClient()


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_user_id_required(client):
    response = await client.get("/api/accounts")

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_unknown_user(client):
    response = await client.get("/api/accounts?user_id=ghost")

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_create_and_list_accounts(client, repo):
    created = await client.post(
        "/api/accounts?user_id=u-admin",
        data=json.dumps({"account_id": "444455556666", "name": "Research", "description": "Research workloads"}),
        content_type="application/json",
    )

    assert created.status_code == 201
    body = created.json()
    assert body["permission_status"] == "NEEDSONBOARD"
    assert body["permission_status_detail"]["display"]
    assert body["onboarded"] is False

    listed = await client.get("/api/accounts?user_id=u-admin")
    assert [item["id"] for item in listed.json()] == [body["id"]]


@pytest.mark.asyncio
async def test_validation_errors_are_reported(client):
    response = await client.post(
        "/api/accounts?user_id=u-admin",
        data=json.dumps({"account_id": "1", "name": "Research", "description": "d"}),
        content_type="application/json",
    )

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["message"] == "Input has validation errors"
    assert detail["errors"][0]["loc"] == ["account_id"]


@pytest.mark.asyncio
async def test_guest_is_forbidden(client, repo):
    repo.records["a1"] = make_account()

    response = await client.get("/api/accounts/a1?user_id=u-guest")

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_stale_update_conflicts(client, repo):
    repo.records["a1"] = make_account(rev=2)

    response = await client.put(
        "/api/accounts/a1?user_id=u-admin",
        data=json.dumps({"rev": 1, "name": "Renamed"}),
        content_type="application/json",
    )

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_batch_check(client, repo, clients):
    repo.records["a1"] = make_account(id="a1", cfn_stack_name="", permission_status=PermissionStatus.NEEDSONBOARD)
    repo.records["a2"] = make_account(id="a2")
    clients.stacks["stk"] = FakeStack("stk")

    response = await client.post(
        "/api/accounts/permissions/check?user_id=u-admin",
        data=json.dumps({"batch_size": 2}),
        content_type="application/json",
    )

    assert response.status_code == 200
    body = response.json()
    assert body["status_by_account_id"] == {"a1": "NEEDSONBOARD", "a2": "CURRENT"}
    assert set(body["errors_by_account_id"]) == {"a1"}


@pytest.mark.asyncio
async def test_batch_size_out_of_range(client):
    response = await client.post(
        "/api/accounts/permissions/check?user_id=u-admin",
        data=json.dumps({"batch_size": 0}),
        content_type="application/json",
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_single_check_persists_status(client, repo, clients):
    repo.records["a2"] = make_account(id="a2", rev=3)
    clients.stacks["stk"] = FakeStack("stk", template="drifted: true")

    response = await client.post("/api/accounts/a2/permissions/check?user_id=u-admin")

    assert response.status_code == 200
    assert response.json() == {"status": "NEEDSUPDATE", "info": "No Issues."}
    assert repo.records["a2"].permission_status is PermissionStatus.NEEDSUPDATE


@pytest.mark.asyncio
async def test_wrong_method(client):
    response = await client.delete("/api/accounts/permissions/check?user_id=u-admin")

    assert response.status_code == 405
