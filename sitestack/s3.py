#!/usr/bin/env python3
"""
S3 resource types.

Each type reads its remote state in the same shape as its declared properties,
so the stack can diff the two and only issue the calls that are needed.
"""
import json
from pathlib import Path

from botocore.exceptions import ClientError

from .models import Resource
from .utils import error_code, get_logger


logger = get_logger(__name__)

MISSING_BUCKET = {"404", "NoSuchBucket", "NotFound"}

PUBLIC_ACCESS_FLAGS = (
    "BlockPublicAcls",
    "BlockPublicPolicy",
    "IgnorePublicAcls",
    "RestrictPublicBuckets",
)


def _absent(error, *codes):
    """Whether a ClientError means the remote object does not exist."""
    return error_code(error) in MISSING_BUCKET or error_code(error) in codes


class Bucket(Resource):
    """An S3 bucket, identified by its name."""

    service = "S3"

    def identity(self, props):
        return props["BucketName"]

    def attributes(self, props, provider):
        name = props["BucketName"]
        return {
            "Id": name,
            "Arn": provider.bucket_arn(name),
            "RegionalDomainName": f"{name}.s3.{provider.region}.{provider.dns_suffix}",
        }

    def read(self, client, props):
        name = props["BucketName"]
        try:
            client.head_bucket(Bucket=name)
        except ClientError as error:
            if _absent(error):
                return None
            raise

        current = {"BucketName": name}
        if "Tags" in props:
            current["Tags"] = self.read_tags(client, name)
        return current

    @staticmethod
    def read_tags(client, name):
        """Tags of a bucket as a dictionary."""
        try:
            response = client.get_bucket_tagging(Bucket=name)
        except ClientError as error:
            if error_code(error) in ("NoSuchTagSet", "NoSuchTagSetError"):
                return {}
            raise
        return {tag["Key"]: tag["Value"] for tag in response.get("TagSet", [])}

    def create(self, client, props):
        name = props["BucketName"]
        kwargs = {"Bucket": name}
        region = client.meta.region_name
        # us-east-1 rejects an explicit location constraint.
        if region and region != "us-east-1":
            kwargs["CreateBucketConfiguration"] = {"LocationConstraint": region}
        client.create_bucket(**kwargs)
        logger.info(f"Created bucket `{name}`.")
        if props.get("Tags"):
            self.put_tags(client, name, props["Tags"])

    def update(self, client, props, current):
        if props.get("Tags") != current.get("Tags"):
            self.put_tags(client, props["BucketName"], props.get("Tags") or {})

    @staticmethod
    def put_tags(client, name, tags):
        """Replace the tag set of a bucket."""
        if not tags:
            client.delete_bucket_tagging(Bucket=name)
            return
        client.put_bucket_tagging(
            Bucket=name,
            Tagging={
                "TagSet": [{"Key": key, "Value": value} for key, value in tags.items()]
            },
        )

    def delete(self, client, props):
        # Fails with BucketNotEmpty when unmanaged objects remain.
        client.delete_bucket(Bucket=props["BucketName"])


class PublicAccessBlock(Resource):
    """The four public access protections of a bucket."""

    service = "S3"

    def read(self, client, props):
        try:
            response = client.get_public_access_block(Bucket=props["Bucket"])
        except ClientError as error:
            if _absent(error, "NoSuchPublicAccessBlockConfiguration"):
                return None
            raise
        config = response["PublicAccessBlockConfiguration"]
        current = {"Bucket": props["Bucket"]}
        current.update({flag: config.get(flag, False) for flag in PUBLIC_ACCESS_FLAGS})
        return current

    def create(self, client, props):
        client.put_public_access_block(
            Bucket=props["Bucket"],
            PublicAccessBlockConfiguration={
                flag: bool(props.get(flag, False)) for flag in PUBLIC_ACCESS_FLAGS
            },
        )

    def delete(self, client, props):
        client.delete_public_access_block(Bucket=props["Bucket"])


class BucketEncryption(Resource):
    """Default server side encryption of a bucket."""

    service = "S3"

    def read(self, client, props):
        try:
            response = client.get_bucket_encryption(Bucket=props["Bucket"])
        except ClientError as error:
            if _absent(error, "ServerSideEncryptionConfigurationNotFoundError"):
                return None
            raise
        rules = response.get("ServerSideEncryptionConfiguration", {}).get("Rules", [])
        if not rules:
            return None
        default = rules[0].get("ApplyServerSideEncryptionByDefault", {})
        return {"Bucket": props["Bucket"], "SSEAlgorithm": default.get("SSEAlgorithm")}

    def create(self, client, props):
        client.put_bucket_encryption(
            Bucket=props["Bucket"],
            ServerSideEncryptionConfiguration={
                "Rules": [
                    {
                        "ApplyServerSideEncryptionByDefault": {
                            "SSEAlgorithm": props["SSEAlgorithm"],
                        }
                    }
                ]
            },
        )

    def delete(self, client, props):
        client.delete_bucket_encryption(Bucket=props["Bucket"])


class BucketWebsite(Resource):
    """Static website hosting configuration of a bucket."""

    service = "S3"

    def attributes(self, props, provider):
        return {
            "Id": props["Bucket"],
            "WebsiteEndpoint": provider.website_endpoint(props["Bucket"]),
            "WebsiteDomain": provider.website_domain(),
        }

    def read(self, client, props):
        try:
            response = client.get_bucket_website(Bucket=props["Bucket"])
        except ClientError as error:
            if _absent(error, "NoSuchWebsiteConfiguration"):
                return None
            raise
        current = {"Bucket": props["Bucket"]}
        if "IndexDocument" in response:
            current["IndexDocument"] = response["IndexDocument"]["Suffix"]
        if "ErrorDocument" in response:
            current["ErrorDocument"] = response["ErrorDocument"]["Key"]
        return current

    def create(self, client, props):
        config = {"IndexDocument": {"Suffix": props["IndexDocument"]}}
        if props.get("ErrorDocument"):
            config["ErrorDocument"] = {"Key": props["ErrorDocument"]}
        client.put_bucket_website(Bucket=props["Bucket"], WebsiteConfiguration=config)

    def delete(self, client, props):
        client.delete_bucket_website(Bucket=props["Bucket"])


class BucketPolicy(Resource):
    """A bucket policy document."""

    service = "S3"

    def read(self, client, props):
        try:
            response = client.get_bucket_policy(Bucket=props["Bucket"])
        except ClientError as error:
            if _absent(error, "NoSuchBucketPolicy"):
                return None
            raise
        return {"Bucket": props["Bucket"], "PolicyDocument": json.loads(response["Policy"])}

    def create(self, client, props):
        client.put_bucket_policy(
            Bucket=props["Bucket"],
            Policy=json.dumps(props["PolicyDocument"]),
        )

    def delete(self, client, props):
        client.delete_bucket_policy(Bucket=props["Bucket"])

    @staticmethod
    def is_public(props):
        """Whether any Allow statement of the policy is granted to everyone."""
        statements = props.get("PolicyDocument", {}).get("Statement", [])
        if isinstance(statements, dict):
            statements = [statements]
        for statement in statements:
            principal = statement.get("Principal")
            if isinstance(principal, dict):
                principal = principal.get("AWS")
            if statement.get("Effect") == "Allow" and principal in ("*", ["*"]):
                return True
        return False


class BucketObject(Resource):
    """A single object uploaded from a local file."""

    service = "S3"
    local_properties = ("Source",)

    def identity(self, props):
        return f"{props['Bucket']}/{props['Key']}"

    def attributes(self, props, provider):
        return {
            "Id": self.identity(props),
            "Url": provider.object_url(props["Bucket"], props["Key"]),
        }

    def resolve(self, context):
        props = super().resolve(context)
        props["Source"] = str(context.source_dir / props["Source"])
        return props

    def read(self, client, props):
        try:
            response = client.head_object(Bucket=props["Bucket"], Key=props["Key"])
        except ClientError as error:
            if _absent(error, "NoSuchKey"):
                return None
            raise
        current = {"Bucket": props["Bucket"], "Key": props["Key"]}
        if "ContentType" in props:
            current["ContentType"] = response.get("ContentType")
        if "Fingerprint" in props:
            current["Fingerprint"] = response.get("Metadata", {}).get("fingerprint")
        return current

    def create(self, client, props):
        kwargs = {
            "Bucket": props["Bucket"],
            "Key": props["Key"],
            "Body": Path(props["Source"]).read_bytes(),
        }
        if props.get("ContentType"):
            kwargs["ContentType"] = props["ContentType"]
        if props.get("Fingerprint"):
            kwargs["Metadata"] = {"fingerprint": props["Fingerprint"]}
        client.put_object(**kwargs)
        logger.info(f"Uploaded `{props['Source']}` to `{self.identity(props)}`.")

    def delete(self, client, props):
        client.delete_object(Bucket=props["Bucket"], Key=props["Key"])
