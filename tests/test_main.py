#!/usr/bin/env python3
"""
Testing the command line interface.
"""
import json

import boto3
from botocore.exceptions import EndpointConnectionError
from moto import mock_aws

from sitestack.__main__ import build_parser, load_variables, main

from tests.fixtures import BUCKET_NAME, write_site


def write_variables(tmp_path, content):
    path = tmp_path / "variables.yml"
    path.write_text(content)
    return str(path)


def common_args(tmp_path, *extra):
    return [
        "--state",
        str(tmp_path / "state.json"),
        "--source-dir",
        str(tmp_path),
        *extra,
    ]


def test_load_variables(tmp_path):
    """Command line assignments override variable files."""
    path = write_variables(
        tmp_path,
        f"bucket_name: {BUCKET_NAME}\ntags:\n  Project: demo\n  Environment: dev\n",
    )
    args = build_parser().parse_args(
        [
            "plan",
            "--var-file",
            path,
            "--var",
            "bucket_name=other-site",
            "--var",
            "use_localstack=true",
        ]
    )
    assert load_variables(args) == {
        "bucket_name": "other-site",
        "tags": {"Project": "demo", "Environment": "dev"},
        "use_localstack": True,
    }


@mock_aws
def test_apply_and_output(tmp_path, capsys):
    write_site(tmp_path)
    path = write_variables(
        tmp_path,
        f"bucket_name: {BUCKET_NAME}\ntags:\n  Project: demo\n  Environment: dev\n",
    )

    assert main(["apply", "--var-file", path, *common_args(tmp_path)]) == 0
    out = capsys.readouterr().out
    assert f"bucket_arn = arn:aws:s3:::{BUCKET_NAME}" in out
    assert (
        f"website_endpoint = {BUCKET_NAME}.s3-website-us-east-1.amazonaws.com" in out
    )

    assert main(["output", *common_args(tmp_path)]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[-2:] == [
        f"website_endpoint = {BUCKET_NAME}.s3-website-us-east-1.amazonaws.com",
        f"bucket_arn = arn:aws:s3:::{BUCKET_NAME}",
    ]

    assert main(["destroy", "--var-file", path, *common_args(tmp_path)]) == 0
    s3_cli = boto3.client("s3")
    assert s3_cli.list_buckets()["Buckets"] == []


@mock_aws
def test_apply_dry_run(tmp_path, capsys):
    write_site(tmp_path)
    args = [
        "apply",
        "--dry-run",
        "--var",
        f"bucket_name={BUCKET_NAME}",
        "--var",
        "tags={Project: demo, Environment: dev}",
        *common_args(tmp_path),
    ]
    assert main(args) == 0
    assert "bucket_arn = " not in capsys.readouterr().out
    assert not (tmp_path / "state.json").exists()


def test_show(tmp_path, capsys):
    assert main(["show", "--format", "json", *common_args(tmp_path)]) == 0
    template = json.loads(capsys.readouterr().out)
    assert list(template["Resources"]) == [
        "SiteBucket",
        "PublicAccess",
        "Encryption",
        "Website",
        "PublicReadPolicy",
        "IndexPage",
    ]


def test_invalid_variables(tmp_path, capsys):
    write_site(tmp_path)
    args = [
        "plan",
        "--var",
        "bucket_name=AB",
        "--var",
        "tags={Project: demo}",
        *common_args(tmp_path),
    ]
    assert main(args) == 1
    err = capsys.readouterr().err
    assert err.startswith("Error: ")
    assert "bucket_name must be between 3 and 63 characters long." in err
    assert "tags must include the `Project` and `Environment` keys." in err


def test_invalid_assignment(tmp_path, capsys):
    assert main(["plan", "--var", "bucket_name", *common_args(tmp_path)]) == 1
    assert "Invalid variable assignment" in capsys.readouterr().err


def test_missing_variable_file(tmp_path, capsys):
    missing = str(tmp_path / "missing.yml")
    assert main(["plan", "--var-file", missing, *common_args(tmp_path)]) == 1
    assert capsys.readouterr().err.startswith("Error: ")


def test_connection_error(tmp_path, capsys, monkeypatch):
    def unreachable(*_args, **_kwargs):
        raise EndpointConnectionError(endpoint_url="http://localstack:4566")

    monkeypatch.setattr("sitestack.__main__.run", unreachable)
    assert main(["plan", *common_args(tmp_path)]) == 1
    err = capsys.readouterr().err
    assert err.startswith("Error: ")
    assert "localstack:4566" in err


def test_strings_are_kept_verbatim():
    args = build_parser().parse_args(
        ["plan", "--var", "bucket_name=0123456", "--var", "tags={Environment: 010}"]
    )
    assert load_variables(args) == {
        "bucket_name": "0123456",
        "tags": {"Environment": "010"},
    }
