#!/usr/bin/env python3
"""
Fixtures used in tests
"""
import os

from sitestack import StaticSite


# moto intercepts every request, these only need to exist.
os.environ["AWS_DEFAULT_REGION"] = "us-east-1"
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"

BUCKET_NAME = "my-test-site-123"

TAGS = {"Project": "demo", "Environment": "dev"}

VARIABLES = {
    "bucket_name": BUCKET_NAME,
    "tags": TAGS,
}

INDEX_HTML = b"<!DOCTYPE html>\n<html><body><h1>Hello</h1></body></html>\n"


def write_site(directory, content=INDEX_HTML):
    """Write index.html into the directory."""
    (directory / "index.html").write_bytes(content)
    return directory


def make_stack(tmp_path, variables=None, stack_class=StaticSite):
    """A stack with its state file and source directory in tmp_path."""
    if not (tmp_path / "index.html").exists():
        write_site(tmp_path)
    return stack_class(
        variables=VARIABLES if variables is None else variables,
        state_path=tmp_path / "state.json",
        source_dir=tmp_path,
    )
