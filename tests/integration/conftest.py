from __future__ import annotations

import os
from contextlib import contextmanager
from pathlib import Path
import tempfile
import uuid

import boto3
import pulumi
import pulumi.automation as auto
import pulumi_aws as aws
import pytest
from testcontainers.localstack import LocalStackContainer

from pulumi_network_associations import Scope

AWS_REGION = "us-east-1"
AWS_ACCESS_KEY_ID = "test"
AWS_SECRET_ACCESS_KEY = "test"
PULUMI_PROJECT_NAME = "pulumi-network-associations-integration-tests"
LOCALSTACK_ACCOUNT_ID = "000000000000"


@pytest.fixture(scope="session", autouse=True)
def localstack_container() -> LocalStackContainer:
    with LocalStackContainer("localstack/localstack:latest").with_services(
        "ec2", "ssm", "sts", "ram"
    ) as localstack:
        yield localstack


@pytest.fixture(scope="session")
def localstack_endpoint(localstack_container: LocalStackContainer) -> str:
    return localstack_container.get_url()


@pytest.fixture(scope="session", autouse=True)
def localstack_env(localstack_endpoint: str):
    with pytest.MonkeyPatch.context() as mp:
        mp.setenv("AWS_ACCESS_KEY_ID", AWS_ACCESS_KEY_ID)
        mp.setenv("AWS_SECRET_ACCESS_KEY", AWS_SECRET_ACCESS_KEY)
        mp.setenv("AWS_DEFAULT_REGION", AWS_REGION)
        # Lookups made by the program share the endpoint with the clients below
        mp.setenv("AWS_ENDPOINT_URL", localstack_endpoint)
        mp.setenv("PULUMI_CONFIG_PASSPHRASE", "localstack")
        mp.setenv("PULUMI_SKIP_UPDATE_CHECK", "true")
        yield


@pytest.fixture
def boto_session() -> boto3.Session:
    return boto3.Session(
        aws_access_key_id=AWS_ACCESS_KEY_ID,
        aws_secret_access_key=AWS_SECRET_ACCESS_KEY,
        region_name=AWS_REGION,
    )


@pytest.fixture
def ec2_client(boto_session: boto3.Session):
    return boto_session.client("ec2")


@pytest.fixture
def ssm_client(boto_session: boto3.Session):
    return boto_session.client("ssm")


def stack_scope() -> Scope:
    """The (account, region) the running stack was created for."""
    return Scope(pulumi.Config().require("account_id"), pulumi.Config("aws").require("region"))


@contextmanager
def pulumi_stack_factory():
    """Yields ``create_stack(program, scope)``; stacks are destroyed on exit."""
    with tempfile.TemporaryDirectory() as temp_dir:
        tmp_path = Path(temp_dir)
        backend_dir = tmp_path / "pulumi-backend"
        backend_dir.mkdir()
        pulumi_home = tmp_path / "pulumi-home"
        pulumi_home.mkdir()
        env_vars = {
            **os.environ.copy(),
            "PULUMI_BACKEND_URL": f"file://{backend_dir}",
            "PULUMI_HOME": str(pulumi_home),
        }

        created_stacks: list[auto.Stack] = []

        def _create_stack(program, scope: Scope) -> auto.Stack:
            stack = auto.create_or_select_stack(
                stack_name=f"{scope.account}-{scope.region}-{uuid.uuid4().hex[:8]}",
                project_name=PULUMI_PROJECT_NAME,
                program=program,
                opts=auto.LocalWorkspaceOptions(env_vars=env_vars),
            )
            stack.set_all_config(
                {
                    f"{PULUMI_PROJECT_NAME}:account_id": auto.ConfigValue(value=scope.account),
                    "aws:region": auto.ConfigValue(value=scope.region),
                }
            )
            created_stacks.append(stack)
            return stack

        try:
            yield _create_stack
        finally:
            for stack in created_stacks:
                try:
                    stack.destroy(on_output=None)
                finally:
                    stack.workspace.remove_stack(stack.name)


def localstack_provider(scope: Scope) -> aws.Provider:
    return aws.Provider(
        f"localstack-{scope.region}",
        region=scope.region,
        access_key=AWS_ACCESS_KEY_ID,
        secret_key=AWS_SECRET_ACCESS_KEY,
        skip_credentials_validation=True,
        skip_metadata_api_check=True,
        skip_requesting_account_id=True,
    )
