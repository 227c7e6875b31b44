#!/usr/bin/env python3
"""
A public static website hosted on S3.

The bucket is deliberately public: all four public access protections are
turned off and anonymous read is granted on every key. Do not point this
stack at a bucket that holds anything else.
"""
import re

from . import s3
from .fn import Fn, GetAtt, Ref
from .stack import Stack
from .variables import Validation, Variable


BUCKET_NAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9.-]*[a-z0-9]$")
REQUIRED_TAGS = ("Project", "Environment")


class SiteBucket(s3.Bucket):
    BucketName = Ref("bucket_name")
    Tags = Ref("tags")


class PublicAccess(s3.PublicAccessBlock):
    Bucket = Ref("SiteBucket")
    BlockPublicAcls = False
    BlockPublicPolicy = False
    IgnorePublicAcls = False
    RestrictPublicBuckets = False


class Encryption(s3.BucketEncryption):
    Bucket = Ref("SiteBucket")
    SSEAlgorithm = "AES256"


class Website(s3.BucketWebsite):
    Bucket = Ref("SiteBucket")
    IndexDocument = "index.html"


class PublicReadPolicy(s3.BucketPolicy):
    Bucket = Ref("SiteBucket")
    PolicyDocument = {
        "Version": "2012-10-17",
        "Statement": [
            {
                "Sid": "PublicReadGetObject",
                "Effect": "Allow",
                "Principal": "*",
                "Action": "s3:GetObject",
                "Resource": Fn.Sub("${SiteBucket.Arn}/*"),
            }
        ],
    }
    # Public policies are rejected until the access block allows them.
    DependsOn = ["PublicAccess"]


class IndexPage(s3.BucketObject):
    Bucket = Ref("SiteBucket")
    Key = "index.html"
    Source = "index.html"
    ContentType = "text/html"
    Fingerprint = Fn.FileMd5("index.html")


class StaticSite(Stack):
    """S3 bucket serving index.html as a public website."""

    Parameters = {
        "aws_region": Variable(
            str,
            default="us-east-1",
            description="AWS region to deploy to.",
            validations=[
                Validation(
                    lambda value: value.strip() != "",
                    "aws_region must not be empty.",
                ),
            ],
        ),
        "bucket_name": Variable(
            str,
            description="Globally unique name of the website bucket.",
            validations=[
                Validation(
                    lambda value: 3 <= len(value) <= 63,
                    "bucket_name must be between 3 and 63 characters long.",
                ),
                Validation(
                    lambda value: BUCKET_NAME_PATTERN.match(value) is not None,
                    "bucket_name may only contain lowercase letters, digits, dots "
                    "and hyphens, and must start and end with a letter or digit.",
                ),
            ],
        ),
        "tags": Variable(
            dict,
            description="Tags applied to the bucket.",
            validations=[
                Validation(
                    lambda value: all(key in value for key in REQUIRED_TAGS),
                    "tags must include the `Project` and `Environment` keys.",
                ),
                Validation(
                    lambda value: all(item.strip() for item in value.values()),
                    "tags values must not be empty.",
                ),
            ],
        ),
        "use_localstack": Variable(
            bool,
            default=False,
            description="Send every request to the LocalStack emulator.",
        ),
    }

    Provider = {
        "region": Ref("aws_region"),
        "use_localstack": Ref("use_localstack"),
    }

    Resources = [
        SiteBucket,
        PublicAccess,
        Encryption,
        Website,
        PublicReadPolicy,
        IndexPage,
    ]

    Outputs = {
        "website_endpoint": GetAtt("Website", "WebsiteEndpoint"),
        "bucket_arn": GetAtt("SiteBucket", "Arn"),
    }
