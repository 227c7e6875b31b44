#!/usr/bin/env python3
"""Default hooks provided by sitestack."""
from botocore.exceptions import BotoCoreError, ClientError

from .errors import ResourceError, SiteStackError
from .fn import Function
from .s3 import Bucket, BucketObject
from .utils import get_logger


logger = get_logger(__name__)


def check_source_files(self, _dryrun):
    """Predeploy hook to check that every uploaded file exists locally."""
    missing = []
    for resource in self.resources:
        if not isinstance(resource, BucketObject):
            continue
        source = getattr(resource, "Source", None)
        if source is None or isinstance(source, Function):
            continue
        path = self.source_dir / source
        if not path.is_file():
            missing.append(f"{resource.logical_name}: {path}")

    if missing:
        raise SiteStackError("Source files not found:\n" + "\n".join(missing))


def guard_public_bucket_adoption(self, _dryrun):
    """
    Predeploy hook to refuse publishing a bucket this stack did not create.

    A bucket that already exists, is not in the state file and holds objects
    this stack does not upload would have all of those objects exposed by the
    public read policy. Set `adopt_existing_bucket` in DeployOptions to
    proceed anyway.
    """
    if self.deploy_options.get("adopt_existing_bucket"):
        return

    state = self.state_file.load()
    recorded = {
        record["Properties"].get("BucketName")
        for record in state["resources"].values()
        if record["Type"] == "AWS::S3::Bucket"
    }

    resolved, _ = self.resolve()
    managed = {}
    for resource, props in resolved:
        if isinstance(resource, BucketObject):
            managed.setdefault(props["Bucket"], set()).add(props["Key"])

    for resource, props in resolved:
        if not isinstance(resource, Bucket) or props["BucketName"] in recorded:
            continue
        name = props["BucketName"]
        try:
            if resource.read(self.client, props) is None:
                continue
            response = self.client.list_objects_v2(Bucket=name, MaxKeys=1000)
        except (BotoCoreError, ClientError) as error:
            raise ResourceError(resource.logical_name, "read", error) from error

        foreign = sorted(
            obj["Key"]
            for obj in response.get("Contents", [])
            if obj["Key"] not in managed.get(name, set())
        )
        if foreign:
            raise SiteStackError(
                f"Bucket `{name}` already exists and holds objects this stack does "
                f"not manage ({', '.join(foreign[:5])}). Making it public would "
                "expose them. Set `adopt_existing_bucket` in DeployOptions to "
                "proceed."
            )
        logger.warning(f"Adopting existing empty bucket `{name}`.")
