"""
AWS implementation of the cloud client capability.

Issues S3, ElastiCache, RDS and STS calls through boto3 and translates
botocore failures into the provider error taxonomy.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import boto3
import botocore.exceptions
from botocore.client import BaseClient

from ..base import ProviderConfig, ResourceKind
from ..client import CloudClient, ResourceStatus, SubmitOutcome
from ..errors import (
    ConflictError,
    FatalError,
    ProviderConfigurationError,
    TransientError,
)

VENDOR = "aws"

# Error codes worth retrying with backoff
TRANSIENT_ERROR_CODES = frozenset(
    [
        "Throttling",
        "ThrottlingException",
        "RequestLimitExceeded",
        "TooManyRequestsException",
        "SlowDown",
        "ServiceUnavailable",
        "ServiceUnavailableException",
        "InternalFailure",
        "InternalError",
        "RequestTimeout",
        "RequestTimeoutException",
        "ExpiredToken",
        "ExpiredTokenException",
        "RequestExpired",
        "InvalidCacheClusterState",
        "InvalidDBInstanceState",
        "OperationAborted",
    ]
)

NETWORK_ERRORS = (
    botocore.exceptions.EndpointConnectionError,
    botocore.exceptions.ConnectionClosedError,
    botocore.exceptions.ConnectTimeoutError,
    botocore.exceptions.ReadTimeoutError,
)

BUCKET_NOT_FOUND_CODES = frozenset(["404", "NoSuchBucket", "NotFound"])

# head_bucket on a name held by another account
BUCKET_FORBIDDEN_CODES = frozenset(["403", "Forbidden", "AccessDenied"])


def _error_code(error: botocore.exceptions.ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "")


def _is_transient(error: botocore.exceptions.ClientError) -> bool:
    if _error_code(error) in TRANSIENT_ERROR_CODES:
        return True
    status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0)
    return status >= 500


def _tags_to_dict(tag_list: List[Dict[str, str]]) -> Dict[str, str]:
    return {tag["Key"]: tag["Value"] for tag in tag_list or []}


class AWSCloudClient(CloudClient):
    """
    boto3-backed client for S3 buckets, ElastiCache clusters and RDS instances.

    Clients are created eagerly at construction; boto3 clients are safe to
    share between concurrent callers, sessions are not.
    """

    def __init__(self, config: ProviderConfig):
        self.config = config
        self.logger = logging.getLogger(self.__class__.__name__)
        self._session = self._create_session()
        self._clients: Dict[str, BaseClient] = {
            service: self._session.client(service, **self._client_kwargs())
            for service in ("s3", "elasticache", "rds", "sts")
        }
        self.logger.info(f"AWS client initialized for region: {config.region}")

    def _create_session(self) -> boto3.Session:
        """Create a boto3 session and make sure credentials resolve locally."""
        credentials = self.config.credentials
        session_kwargs = {"region_name": self.config.region}

        if credentials.get("profile"):
            session_kwargs["profile_name"] = credentials["profile"]
        if credentials.get("access_key_id"):
            session_kwargs["aws_access_key_id"] = credentials["access_key_id"]
        if credentials.get("secret_access_key"):
            session_kwargs["aws_secret_access_key"] = credentials[
                "secret_access_key"
            ]
        if credentials.get("session_token"):
            session_kwargs["aws_session_token"] = credentials["session_token"]

        try:
            session = boto3.Session(**session_kwargs)
        except botocore.exceptions.ProfileNotFound as e:
            raise ProviderConfigurationError(
                f"AWS profile not found: {credentials.get('profile')}",
                vendor=VENDOR,
                original_error=e,
            )

        if session.get_credentials() is None:
            raise ProviderConfigurationError(
                "AWS credentials not found. Please configure AWS credentials.",
                vendor=VENDOR,
            )
        return session

    def _client_kwargs(self) -> Dict[str, Any]:
        if self.config.endpoint_url:
            return {"endpoint_url": self.config.endpoint_url}
        return {}

    def _translate(
        self, error: Exception, action: str, identifier: Optional[str] = None
    ) -> Exception:
        """Map a botocore failure onto the provider error taxonomy."""
        if isinstance(error, botocore.exceptions.ClientError):
            code = _error_code(error)
            message = error.response.get("Error", {}).get("Message", str(error))
            if _is_transient(error):
                return TransientError(
                    f"{action} failed transiently: {code}",
                    vendor=VENDOR,
                    resource_id=identifier,
                    original_error=error,
                )
            return FatalError(
                f"{action} rejected: {code}: {message}",
                vendor=VENDOR,
                resource_id=identifier,
                original_error=error,
                error_code=code,
            )
        if isinstance(error, NETWORK_ERRORS):
            return TransientError(
                f"{action} failed: network error",
                vendor=VENDOR,
                resource_id=identifier,
                original_error=error,
            )
        return FatalError(
            f"{action} failed: {error}",
            vendor=VENDOR,
            resource_id=identifier,
            original_error=error,
        )

    async def authenticate(self) -> Dict[str, Any]:
        """Verify credentials with STS."""
        try:
            identity = await asyncio.to_thread(self._clients["sts"].get_caller_identity)
        except (botocore.exceptions.ClientError, botocore.exceptions.BotoCoreError) as e:
            raise self._translate(e, "get_caller_identity")

        return {
            "account": identity.get("Account"),
            "arn": identity.get("Arn"),
            "region": self.config.region,
        }

    async def create_resource(
        self, kind: ResourceKind, identifier: str, params: Dict[str, Any]
    ) -> SubmitOutcome:
        try:
            if kind == ResourceKind.STORAGE:
                return await asyncio.to_thread(self._create_bucket, identifier, params)
            elif kind == ResourceKind.CACHE:
                return await asyncio.to_thread(
                    self._create_cache_cluster, identifier, params
                )
            elif kind == ResourceKind.DATABASE:
                return await asyncio.to_thread(
                    self._create_db_instance, identifier, params
                )
            else:
                raise FatalError(f"Unsupported resource kind: {kind}", vendor=VENDOR)
        except (botocore.exceptions.ClientError, botocore.exceptions.BotoCoreError) as e:
            raise self._translate(e, f"create {kind.value}", identifier)

    async def describe_resource(
        self, kind: ResourceKind, identifier: str
    ) -> Optional[ResourceStatus]:
        try:
            if kind == ResourceKind.STORAGE:
                return await asyncio.to_thread(self._describe_bucket, identifier)
            elif kind == ResourceKind.CACHE:
                return await asyncio.to_thread(
                    self._describe_cache_cluster, identifier
                )
            elif kind == ResourceKind.DATABASE:
                return await asyncio.to_thread(self._describe_db_instance, identifier)
            else:
                raise FatalError(f"Unsupported resource kind: {kind}", vendor=VENDOR)
        except (botocore.exceptions.ClientError, botocore.exceptions.BotoCoreError) as e:
            raise self._translate(e, f"describe {kind.value}", identifier)

    async def delete_resource(
        self, kind: ResourceKind, identifier: str, params: Dict[str, Any]
    ) -> SubmitOutcome:
        try:
            if kind == ResourceKind.STORAGE:
                return await asyncio.to_thread(self._delete_bucket, identifier)
            elif kind == ResourceKind.CACHE:
                return await asyncio.to_thread(
                    self._delete_cache_cluster, identifier, params
                )
            elif kind == ResourceKind.DATABASE:
                return await asyncio.to_thread(
                    self._delete_db_instance, identifier, params
                )
            else:
                raise FatalError(f"Unsupported resource kind: {kind}", vendor=VENDOR)
        except (botocore.exceptions.ClientError, botocore.exceptions.BotoCoreError) as e:
            raise self._translate(e, f"delete {kind.value}", identifier)

    async def list_resources(self, kind: ResourceKind) -> List[str]:
        try:
            return await asyncio.to_thread(self._list_identifiers, kind)
        except (botocore.exceptions.ClientError, botocore.exceptions.BotoCoreError) as e:
            raise self._translate(e, f"list {kind.value}")

    def _list_identifiers(self, kind: ResourceKind) -> List[str]:
        if kind == ResourceKind.STORAGE:
            response = self._clients["s3"].list_buckets()
            return [bucket["Name"] for bucket in response.get("Buckets", [])]
        elif kind == ResourceKind.CACHE:
            paginator = self._clients["elasticache"].get_paginator(
                "describe_cache_clusters"
            )
            return [
                cluster["CacheClusterId"]
                for page in paginator.paginate()
                for cluster in page.get("CacheClusters", [])
            ]
        elif kind == ResourceKind.DATABASE:
            paginator = self._clients["rds"].get_paginator("describe_db_instances")
            return [
                instance["DBInstanceIdentifier"]
                for page in paginator.paginate()
                for instance in page.get("DBInstances", [])
            ]
        else:
            raise FatalError(f"Unsupported resource kind: {kind}", vendor=VENDOR)

    # S3 Implementation Methods
    def _create_bucket(self, name: str, params: Dict[str, Any]) -> SubmitOutcome:
        """Create an S3 bucket."""
        s3 = self._clients["s3"]
        create_params: Dict[str, Any] = {"Bucket": name}

        # us-east-1 rejects an explicit location constraint
        if self.config.region != "us-east-1":
            create_params["CreateBucketConfiguration"] = {
                "LocationConstraint": self.config.region
            }

        try:
            s3.create_bucket(**create_params)
        except botocore.exceptions.ClientError as e:
            code = _error_code(e)
            if code == "BucketAlreadyOwnedByYou":
                return SubmitOutcome.ALREADY_EXISTS
            if code == "BucketAlreadyExists":
                raise ConflictError(
                    f"Bucket name {name} is owned by another account",
                    vendor=VENDOR,
                    resource_id=name,
                    original_error=e,
                )
            raise

        if params.get("tags"):
            s3.put_bucket_tagging(
                Bucket=name,
                Tagging={
                    "TagSet": [
                        {"Key": k, "Value": v} for k, v in params["tags"].items()
                    ]
                },
            )
        return SubmitOutcome.SUBMITTED

    def _describe_bucket(self, name: str) -> Optional[ResourceStatus]:
        """Report a bucket as available if it exists and we can reach it."""
        try:
            self._clients["s3"].head_bucket(Bucket=name)
        except botocore.exceptions.ClientError as e:
            code = _error_code(e)
            if code in BUCKET_NOT_FOUND_CODES:
                return None
            if code in BUCKET_FORBIDDEN_CODES:
                raise ConflictError(
                    f"Bucket name {name} is owned by another account",
                    vendor=VENDOR,
                    resource_id=name,
                    original_error=e,
                )
            raise
        return ResourceStatus(identifier=name, status="available")

    def _delete_bucket(self, name: str) -> SubmitOutcome:
        """Empty and delete an S3 bucket."""
        s3 = self._clients["s3"]
        try:
            paginator = s3.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=name):
                objects = [{"Key": obj["Key"]} for obj in page.get("Contents", [])]
                if objects:
                    s3.delete_objects(Bucket=name, Delete={"Objects": objects})
            s3.delete_bucket(Bucket=name)
        except botocore.exceptions.ClientError as e:
            if _error_code(e) in BUCKET_NOT_FOUND_CODES:
                return SubmitOutcome.ALREADY_ABSENT
            raise
        return SubmitOutcome.SUBMITTED

    # ElastiCache Implementation Methods
    def _create_cache_cluster(
        self, cluster_id: str, params: Dict[str, Any]
    ) -> SubmitOutcome:
        """Create an ElastiCache cluster."""
        try:
            self._clients["elasticache"].create_cache_cluster(
                CacheClusterId=cluster_id, **params
            )
        except botocore.exceptions.ClientError as e:
            if _error_code(e) == "CacheClusterAlreadyExists":
                return SubmitOutcome.ALREADY_EXISTS
            raise
        return SubmitOutcome.SUBMITTED

    def _describe_cache_cluster(self, cluster_id: str) -> Optional[ResourceStatus]:
        """Describe an ElastiCache cluster including its tags and endpoint."""
        elasticache = self._clients["elasticache"]
        try:
            response = elasticache.describe_cache_clusters(
                CacheClusterId=cluster_id, ShowCacheNodeInfo=True
            )
        except botocore.exceptions.ClientError as e:
            if _error_code(e) == "CacheClusterNotFound":
                return None
            raise

        clusters = response.get("CacheClusters", [])
        if not clusters:
            return None
        cluster = clusters[0]

        status = cluster.get("CacheClusterStatus", "unknown")

        # Tags only feed the conflict check; skip them once deletion started
        tags: Dict[str, str] = {}
        if cluster.get("ARN") and status.lower() not in ("deleting", "deleted"):
            try:
                tag_response = elasticache.list_tags_for_resource(
                    ResourceName=cluster["ARN"]
                )
            except botocore.exceptions.ClientError as e:
                # Cluster vanished between the two calls
                if _error_code(e) == "CacheClusterNotFound":
                    return None
                raise
            tags = _tags_to_dict(tag_response.get("TagList", []))

        host = None
        port = None
        nodes = cluster.get("CacheNodes") or []
        if nodes and nodes[0].get("Endpoint"):
            host = nodes[0]["Endpoint"].get("Address")
            port = nodes[0]["Endpoint"].get("Port")
        elif cluster.get("ConfigurationEndpoint"):
            host = cluster["ConfigurationEndpoint"].get("Address")
            port = cluster["ConfigurationEndpoint"].get("Port")

        return ResourceStatus(
            identifier=cluster["CacheClusterId"],
            status=status,
            engine=cluster.get("Engine"),
            engine_version=cluster.get("EngineVersion"),
            tags=tags,
            attributes={
                "node_type": cluster.get("CacheNodeType"),
                "num_nodes": cluster.get("NumCacheNodes"),
            },
            host=host,
            port=port,
            failure_reason=status,
        )

    def _delete_cache_cluster(
        self, cluster_id: str, params: Dict[str, Any]
    ) -> SubmitOutcome:
        """Delete an ElastiCache cluster."""
        try:
            self._clients["elasticache"].delete_cache_cluster(
                CacheClusterId=cluster_id, **params
            )
        except botocore.exceptions.ClientError as e:
            if _error_code(e) == "CacheClusterNotFound":
                return SubmitOutcome.ALREADY_ABSENT
            raise
        return SubmitOutcome.SUBMITTED

    # RDS Implementation Methods
    def _create_db_instance(
        self, instance_id: str, params: Dict[str, Any]
    ) -> SubmitOutcome:
        """Create an RDS database instance."""
        try:
            self._clients["rds"].create_db_instance(
                DBInstanceIdentifier=instance_id, **params
            )
        except botocore.exceptions.ClientError as e:
            if _error_code(e) == "DBInstanceAlreadyExists":
                return SubmitOutcome.ALREADY_EXISTS
            raise
        return SubmitOutcome.SUBMITTED

    def _describe_db_instance(self, instance_id: str) -> Optional[ResourceStatus]:
        """Describe an RDS database instance."""
        try:
            response = self._clients["rds"].describe_db_instances(
                DBInstanceIdentifier=instance_id
            )
        except botocore.exceptions.ClientError as e:
            if _error_code(e) == "DBInstanceNotFound":
                return None
            raise

        instances = response.get("DBInstances", [])
        if not instances:
            return None
        instance = instances[0]
        endpoint = instance.get("Endpoint") or {}

        return ResourceStatus(
            identifier=instance["DBInstanceIdentifier"],
            status=instance.get("DBInstanceStatus", "unknown"),
            engine=instance.get("Engine"),
            engine_version=instance.get("EngineVersion"),
            tags=_tags_to_dict(instance.get("TagList", [])),
            attributes={
                "instance_class": instance.get("DBInstanceClass"),
                "database_name": instance.get("DBName"),
                "allocated_storage": instance.get("AllocatedStorage"),
                "multi_az": instance.get("MultiAZ"),
            },
            host=endpoint.get("Address"),
            port=endpoint.get("Port"),
            credentials_ref=(instance.get("MasterUserSecret") or {}).get("SecretArn"),
            failure_reason=instance.get("DBInstanceStatus"),
        )

    def _delete_db_instance(
        self, instance_id: str, params: Dict[str, Any]
    ) -> SubmitOutcome:
        """Delete an RDS database instance."""
        try:
            self._clients["rds"].delete_db_instance(
                DBInstanceIdentifier=instance_id, **params
            )
        except botocore.exceptions.ClientError as e:
            if _error_code(e) == "DBInstanceNotFound":
                return SubmitOutcome.ALREADY_ABSENT
            raise
        return SubmitOutcome.SUBMITTED
