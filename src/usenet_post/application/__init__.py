"""Application layer package."""

from usenet_post.application.encoder import JobEncoder, encode_arguments
from usenet_post.application.manifest import Manifest, ManifestBuilder, ManifestLine, parse_manifest_line
from usenet_post.application.router import OutputRouter
from usenet_post.application.poster import Poster, post

__all__ = [
    "JobEncoder",
    "encode_arguments",
    "Manifest",
    "ManifestBuilder",
    "ManifestLine",
    "parse_manifest_line",
    "OutputRouter",
    "Poster",
    "post",
]
