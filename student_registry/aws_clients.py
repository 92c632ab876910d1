import boto3

from .config import DEFAULT_REGION


def _kw(region: str | None, endpoint_url: str | None):
    k = {"region_name": region or DEFAULT_REGION}
    if endpoint_url:
        k["endpoint_url"] = endpoint_url  # e.g. http://localhost:4566 for LocalStack
    return k


def dynamodb_client(region: str | None = None, endpoint_url: str | None = None):
    return boto3.client("dynamodb", **_kw(region, endpoint_url))


def dynamodb_resource(region: str | None = None, endpoint_url: str | None = None):
    return boto3.resource("dynamodb", **_kw(region, endpoint_url))
