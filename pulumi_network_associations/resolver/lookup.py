"""Program-time lookups against SSM, EC2 and RAM through boto3."""

from __future__ import annotations

from typing import Callable, Protocol

import boto3
import pulumi
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import RemoteLookupFailure
from ..topology.keys import role_arn
from .scope import Scope

BOTO_CONFIG = Config(retries={"mode": "standard", "max_attempts": 10})

ATTACHMENT_STATES = ["available", "pending", "modifying", "pendingAcceptance"]


class LookupHelper(Protocol):
    """Reads values bound to one (account, region)."""

    scope: Scope

    def get_parameter(self, path: str) -> str | None:
        """Return the published value, or ``None`` when nothing is published."""

    def find_transit_gateway_attachment(
        self,
        name: str,
        transit_gateway_id: str,
        owner_account_id: str,
        attachment_type: str,
    ) -> str | None: ...

    def find_shared_resource(
        self, share_name: str, resource_type: str, owner_account_id: str
    ) -> str | None: ...


LookupHelperFactory = Callable[[Scope, "str | None"], LookupHelper]


class Boto3LookupHelper:
    def __init__(self, session: boto3.Session, scope: Scope):
        self.scope = scope
        self._session = session
        self._clients: dict[str, object] = {}

    def _client(self, service: str):
        if service not in self._clients:
            self._clients[service] = self._session.client(
                service, region_name=self.scope.region, config=BOTO_CONFIG
            )
        return self._clients[service]

    def _failure(self, action: str, err: Exception) -> RemoteLookupFailure:
        return RemoteLookupFailure(f"{action} failed in {self.scope}: {err}", scope=self.scope)

    def get_parameter(self, path: str) -> str | None:
        try:
            response = self._client("ssm").get_parameter(Name=path)
        except ClientError as err:
            if err.response["Error"]["Code"] == "ParameterNotFound":
                return None
            raise self._failure(f"GetParameter {path}", err) from err
        except BotoCoreError as err:
            raise self._failure(f"GetParameter {path}", err) from err
        return response["Parameter"]["Value"]

    def find_transit_gateway_attachment(
        self,
        name: str,
        transit_gateway_id: str,
        owner_account_id: str,
        attachment_type: str,
    ) -> str | None:
        paginator = self._client("ec2").get_paginator(
            "describe_transit_gateway_attachments"
        )
        filters = [
            {"Name": "transit-gateway-id", "Values": [transit_gateway_id]},
            {"Name": "resource-type", "Values": [attachment_type]},
            {"Name": "resource-owner-id", "Values": [owner_account_id]},
            {"Name": "tag:Name", "Values": [name]},
            {"Name": "state", "Values": ATTACHMENT_STATES},
        ]
        try:
            for page in paginator.paginate(Filters=filters):
                for attachment in page.get("TransitGatewayAttachments", []):
                    return attachment["TransitGatewayAttachmentId"]
        except (ClientError, BotoCoreError) as err:
            raise self._failure(f"DescribeTransitGatewayAttachments {name}", err) from err
        return None

    def find_shared_resource(
        self, share_name: str, resource_type: str, owner_account_id: str
    ) -> str | None:
        ram = self._client("ram")
        try:
            share_arns = [
                share["resourceShareArn"]
                for page in ram.get_paginator("get_resource_shares").paginate(
                    resourceOwner="OTHER-ACCOUNTS",
                    name=share_name,
                    resourceShareStatus="ACTIVE",
                )
                for share in page.get("resourceShares", [])
                if share.get("owningAccountId") == owner_account_id
            ]
            if not share_arns:
                return None
            pages = ram.get_paginator("list_resources").paginate(
                resourceOwner="OTHER-ACCOUNTS",
                resourceShareArns=share_arns,
                resourceType=resource_type,
            )
            for page in pages:
                for resource in page.get("resources", []):
                    return resource["arn"].split("/")[-1]
        except (ClientError, BotoCoreError) as err:
            raise self._failure(f"Resource share lookup {share_name}", err) from err
        return None


class Boto3LookupHelperFactory:
    """Builds lookup helpers, assuming a role in the target account when asked."""

    def __init__(
        self,
        session: boto3.Session | None = None,
        partition: str = "aws",
        session_name: str = "network-associations-lookup",
    ):
        self._session = session or boto3.Session()
        self._partition = partition
        self._session_name = session_name

    def __call__(self, scope: Scope, role_name: str | None = None) -> Boto3LookupHelper:
        if role_name is None:
            return Boto3LookupHelper(self._session, scope)
        return Boto3LookupHelper(self._assume_role(scope, role_name), scope)

    def _assume_role(self, scope: Scope, role_name: str) -> boto3.Session:
        arn = role_arn(scope.account, role_name, self._partition)
        pulumi.log.info(f"Assuming {arn} for lookups in {scope}")
        sts = self._session.client("sts", config=BOTO_CONFIG)
        try:
            credentials = sts.assume_role(RoleArn=arn, RoleSessionName=self._session_name)[
                "Credentials"
            ]
        except (ClientError, BotoCoreError) as err:
            raise RemoteLookupFailure(
                f"AssumeRole {arn} failed: {err}", key=role_name, scope=scope
            ) from err
        return boto3.Session(
            aws_access_key_id=credentials["AccessKeyId"],
            aws_secret_access_key=credentials["SecretAccessKey"],
            aws_session_token=credentials["SessionToken"],
            region_name=scope.region,
        )
