#!/usr/bin/env python3
from sitestack import StaticSite, Ref, Stack
from sitestack import s3
from sitestack.website import (
    Encryption,
    IndexPage,
    PublicAccess,
    PublicReadPolicy,
    SiteBucket,
)


class NotFoundPage(s3.BucketObject):
    Bucket = Ref("SiteBucket")
    Key = "404.html"
    Source = "404.html"
    ContentType = "text/html"


class Website(s3.BucketWebsite):
    Bucket = Ref("SiteBucket")
    IndexDocument = "index.html"
    ErrorDocument = "404.html"


class SiteWithErrorPage(Stack):
    Parameters = StaticSite.Parameters
    Provider = StaticSite.Provider
    Resources = [
        SiteBucket,
        PublicAccess,
        Encryption,
        Website,
        PublicReadPolicy,
        IndexPage,
        NotFoundPage,
    ]
    Outputs = StaticSite.Outputs


if __name__ == "__main__":
    stack = SiteWithErrorPage()
    print(stack.yaml)
    print("-" * 88)
    print(stack.json)
