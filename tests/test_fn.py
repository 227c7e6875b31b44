#!/usr/bin/env python3
"""
Testing references and functions.
"""
import hashlib

import pytest

from sitestack.fn import (
    Context,
    FileMd5,
    Fn,
    GetAtt,
    Join,
    Ref,
    Sub,
    references,
    render,
    resolve,
)


@pytest.fixture(name="context")
def fixture_context(tmp_path):
    return Context(
        variables={"bucket_name": "site", "tags": {"Project": "demo"}},
        attributes={"SiteBucket": {"Id": "site", "Arn": "arn:aws:s3:::site"}},
        source_dir=tmp_path,
    )


def test_ref(context):
    """Ref looks up variables first, then resource ids."""
    assert resolve(Ref("bucket_name"), context) == "site"
    assert resolve(Ref("tags"), context) == {"Project": "demo"}
    assert resolve(Ref("SiteBucket"), context) == "site"

    with pytest.raises(ValueError):
        resolve(Ref("Missing"), context)


def test_get_att(context):
    assert resolve(GetAtt("SiteBucket", "Arn"), context) == "arn:aws:s3:::site"

    with pytest.raises(ValueError):
        resolve(GetAtt("SiteBucket", "WebsiteEndpoint"), context)


def test_join(context):
    node = Join("/", [GetAtt("SiteBucket", "Arn"), "*"])
    assert resolve(node, context) == "arn:aws:s3:::site/*"


def test_sub(context):
    assert resolve(Sub("${SiteBucket.Arn}/*"), context) == "arn:aws:s3:::site/*"
    assert resolve(Sub("${bucket_name}.example.com"), context) == "site.example.com"
    assert resolve(Sub("${Name}-${bucket_name}", {"Name": "x"}), context) == "x-site"
    assert resolve(Sub("${!Literal}"), context) == "${Literal}"

    with pytest.raises(ValueError):
        Sub(["not", "a", "string"])


def test_file_md5(context, tmp_path):
    (tmp_path / "index.html").write_bytes(b"hello")
    assert resolve(FileMd5("index.html"), context) == hashlib.md5(b"hello").hexdigest()

    with pytest.raises(ValueError):
        resolve(FileMd5("missing.html"), context)


def test_resolve_nested(context):
    node = {
        "Statement": [
            {"Principal": "*", "Resource": Fn.Sub("${SiteBucket.Arn}/*")},
        ],
        "Enabled": False,
        "Count": 3,
        "Missing": None,
    }
    assert resolve(node, context) == {
        "Statement": [{"Principal": "*", "Resource": "arn:aws:s3:::site/*"}],
        "Enabled": False,
        "Count": 3,
        "Missing": None,
    }

    with pytest.raises(ValueError):
        resolve({"class": object()}, context)


def test_render():
    node = {
        "Bucket": Ref("SiteBucket"),
        "Resource": [Sub("${SiteBucket.Arn}/*"), GetAtt("Website", "WebsiteEndpoint")],
        "Fingerprint": FileMd5("index.html"),
        "Joined": Join("-", ["a", Ref("b")]),
    }
    assert render(node) == {
        "Bucket": {"Ref": "SiteBucket"},
        "Resource": [
            {"Fn::Sub": "${SiteBucket.Arn}/*"},
            {"Fn::GetAtt": ["Website", "WebsiteEndpoint"]},
        ],
        "Fingerprint": {"Fn::FileMd5": "index.html"},
        "Joined": {"Fn::Join": ["-", ["a", {"Ref": "b"}]]},
    }
    assert render(Sub("${A}", {"A": Ref("B")})) == {"Fn::Sub": ["${A}", {"A": {"Ref": "B"}}]}


def test_references():
    node = {
        "Bucket": Ref("SiteBucket"),
        "Policy": [Sub("${Website.Id}/${!Skipped}/${Name}", {"Name": Ref("bucket_name")})],
        "Other": GetAtt("Encryption", "Id"),
        "Hash": FileMd5("index.html"),
    }
    assert sorted(references(node)) == ["Encryption", "SiteBucket", "Website", "bucket_name"]
