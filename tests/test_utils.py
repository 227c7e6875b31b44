#!/usr/bin/env python3
"""
Testing logging and formatting helpers
"""
import logging
from types import SimpleNamespace

from botocore.exceptions import ClientError

from sitestack.stack import format_changes, format_name
from sitestack.utils import ColorFormatter, error_code, get_logger


def test_format_name():
    """three typical cases."""
    assert format_name("StaticSite") == "static-site"
    assert format_name("TestAPIStack") == "test-api-stack"
    assert format_name("TestS3Stack") == "test-s3-stack"
    assert format_name("PublicStaticS3Site") == "public-static-s3-site"


def test_color_logger(caplog, capsys):
    logger_name = "unit"
    logger = get_logger(logger_name)

    levels = ["info", "warning", "error", "critical"]
    for level in levels:
        getattr(logger, level)(level)

    records = caplog.record_tuples
    lines = capsys.readouterr().out.splitlines()

    for i, level in enumerate(levels):
        logging_level = getattr(logging, level.upper())
        assert records[i] == (logger_name, logging_level, level)
        expected_color = ColorFormatter.FORMATS[logging_level][:8]
        assert lines[i].startswith(expected_color)


def test_logger_handler_attached_once():
    first = get_logger("unit.once")
    second = get_logger("unit.once")
    assert first is second
    assert len(second.handlers) == 1


def test_format_changes():
    create = SimpleNamespace(
        action="create",
        logical_name="SiteBucket",
        resource_type="AWS::S3::Bucket",
        details=[],
    )
    line1 = "[CREATE] SiteBucket(AWS::S3::Bucket)"
    assert format_changes([create]) == line1

    update = SimpleNamespace(
        action="update",
        logical_name="IndexPage",
        resource_type="AWS::S3::BucketObject",
        details=["Fingerprint"],
    )
    line2 = "[UPDATE] IndexPage(AWS::S3::BucketObject):\n\tFingerprint"
    noop = SimpleNamespace(
        action="noop",
        logical_name="Website",
        resource_type="AWS::S3::BucketWebsite",
        details=[],
    )
    formatted = format_changes([create, noop, update])
    assert formatted == "\n".join([line1, line2])


def test_error_code():
    error = ClientError({"Error": {"Code": "NoSuchBucket"}}, "HeadBucket")
    assert error_code(error) == "NoSuchBucket"
    assert error_code(ClientError({}, "HeadBucket")) == ""
