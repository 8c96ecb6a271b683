import pytest
from botocore.exceptions import ClientError

from account_onboarding.errors import ForbiddenError
from account_onboarding.services import CfnStackClient, CrossAccountClientFactory


def client_error(code, message, operation):
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


class DenyingSts:
    def __init__(self):
        self.requests = []

    def assume_role(self, **kwargs):
        self.requests.append(kwargs)
        raise client_error("AccessDenied", "not authorized to perform sts:AssumeRole", "AssumeRole")


class FakeCloudFormation:
    def __init__(self, stacks=None, template=None):
        self.stacks = stacks or {}
        self.template = template

    def describe_stacks(self, StackName):
        if StackName not in self.stacks:
            raise client_error("ValidationError", f"Stack with id {StackName} does not exist", "DescribeStacks")
        return {"Stacks": [self.stacks[StackName]]}

    def get_template(self, StackName):
        return {"TemplateBody": self.template}


@pytest.mark.asyncio
async def test_assume_role_failure_is_forbidden(settings):
    sts = DenyingSts()
    factory = CrossAccountClientFactory(sts, settings)

    with pytest.raises(ForbiddenError) as excinfo:
        await factory.get_client_for(role_arn="arn:aws:iam::1:role/r", external_id="workbench", region="us-east-1")

    assert excinfo.value.user_message == "Could not assume a role to check the stack status"
    [request] = sts.requests
    assert request["ExternalId"] == "workbench"
    assert request["RoleSessionName"].startswith("onboard-permission-check-")
    assert len(request["RoleSessionName"]) <= 64


@pytest.mark.asyncio
async def test_missing_role_is_forbidden(settings):
    sts = DenyingSts()
    factory = CrossAccountClientFactory(sts, settings)

    with pytest.raises(ForbiddenError):
        await factory.get_client_for(role_arn=None, external_id="workbench", region="us-east-1")

    assert sts.requests == []


@pytest.mark.asyncio
async def test_describe_unknown_stack_is_empty():
    client = CfnStackClient(FakeCloudFormation())

    assert await client.describe_stacks("stk") == []


@pytest.mark.asyncio
async def test_describe_other_errors_propagate():
    class Throttled(FakeCloudFormation):
        def describe_stacks(self, StackName):
            raise client_error("Throttling", "Rate exceeded", "DescribeStacks")

    with pytest.raises(ClientError):
        await CfnStackClient(Throttled()).describe_stacks("stk")


@pytest.mark.asyncio
async def test_json_template_body_is_serialised():
    client = CfnStackClient(FakeCloudFormation(template={"Resources": {"Role": {"Type": "AWS::IAM::Role"}}}))

    body = await client.get_template_body("stk")

    assert '"Type": "AWS::IAM::Role"' in body
