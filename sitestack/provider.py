#!/usr/bin/env python3
"""
Provider configuration: where and how resource operations are sent.
"""
import os
import re

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError

from .errors import ProviderError


LOCALSTACK_ENDPOINT = "http://localstack:4566"
LOCALSTACK_CREDENTIALS = ("test", "test")

REGION_PATTERN = re.compile(r"^[a-z]{2}(-[a-z]+)+-\d+$")

# Regions that predate the `s3-website.<region>` endpoint format.
LEGACY_WEBSITE_REGIONS = {
    "us-east-1",
    "us-west-1",
    "us-west-2",
    "ap-southeast-1",
    "ap-southeast-2",
    "ap-northeast-1",
    "sa-east-1",
    "eu-west-1",
    "us-gov-west-1",
}

DNS_SUFFIXES = {"aws-cn": "amazonaws.com.cn"}
DEFAULT_DNS_SUFFIX = "amazonaws.com"


class ProviderConfig:
    """
    Explicit provider settings, built once per invocation and handed to every
    resource operation.
    """

    def __init__(
        self,
        region,
        endpoint_url=None,
        access_key=None,
        secret_key=None,
        path_style=False,
    ):
        self.region = region
        self.endpoint_url = endpoint_url
        self.access_key = access_key
        self.secret_key = secret_key
        self.path_style = path_style

    @classmethod
    def select(cls, region, use_localstack=False, endpoint=None):
        """
        Pick live AWS or the local emulator.

        The emulator endpoint defaults to SITESTACK_LOCALSTACK_ENDPOINT, then
        to the LocalStack service address.
        """
        if not use_localstack:
            return cls(region)
        if endpoint is None:
            endpoint = os.environ.get("SITESTACK_LOCALSTACK_ENDPOINT", LOCALSTACK_ENDPOINT)
        access_key, secret_key = LOCALSTACK_CREDENTIALS
        return cls(
            region,
            endpoint_url=endpoint,
            access_key=access_key,
            secret_key=secret_key,
            path_style=True,
        )

    def __eq__(self, other):
        if not isinstance(other, ProviderConfig):
            return NotImplemented
        return vars(self) == vars(other)

    def __repr__(self):
        target = self.endpoint_url or "aws"
        return f"<ProviderConfig {self.region} via {target}>"

    @property
    def emulated(self):
        """Whether requests go to an endpoint override."""
        return self.endpoint_url is not None

    @property
    def session(self):
        """A boto3 session carrying the region and any static credentials."""
        return boto3.session.Session(
            region_name=self.region,
            aws_access_key_id=self.access_key,
            aws_secret_access_key=self.secret_key,
        )

    def check(self):
        """Fail before any resource operation if the provider cannot work."""
        if not self.region or not REGION_PATTERN.match(self.region):
            raise ProviderError(f"Invalid region: `{self.region}`")
        try:
            self.session.get_partition_for_region(self.region)
        except BotoCoreError as error:
            raise ProviderError(f"Unknown region: `{self.region}`") from error
        if self.emulated:
            return
        if self.session.get_credentials() is None:
            raise ProviderError(
                "Unable to locate AWS credentials for region "
                f"`{self.region}`. Configure the AWS credential chain."
            )

    @property
    def partition(self):
        """AWS partition of the region, e.g. `aws-cn` for cn-north-1."""
        return self.session.get_partition_for_region(self.region)

    @property
    def dns_suffix(self):
        """Domain suffix of the partition."""
        return DNS_SUFFIXES.get(self.partition, DEFAULT_DNS_SUFFIX)

    def client(self, service):
        """Create a boto3 client for the service."""
        config = Config(
            signature_version="s3v4",
            s3={"addressing_style": "path" if self.path_style else "auto"},
        )
        return self.session.client(
            service,
            endpoint_url=self.endpoint_url,
            config=config,
        )

    def bucket_arn(self, bucket):
        """ARN of a bucket."""
        return f"arn:{self.partition}:s3:::{bucket}"

    def website_domain(self):
        """Domain of the website endpoints in this region."""
        if self.region in LEGACY_WEBSITE_REGIONS:
            return f"s3-website-{self.region}.{self.dns_suffix}"
        return f"s3-website.{self.region}.{self.dns_suffix}"

    def website_endpoint(self, bucket):
        """Website endpoint of a bucket."""
        return f"{bucket}.{self.website_domain()}"

    def object_url(self, bucket, key):
        """Address of an object, path style on the emulator."""
        if self.path_style:
            return f"{self.endpoint_url}/{bucket}/{key}"
        return f"https://{bucket}.s3.{self.region}.{self.dns_suffix}/{key}"
