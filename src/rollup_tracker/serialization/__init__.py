"""Binary and document codecs for rollup metadata."""

from rollup_tracker import __version__
from rollup_tracker.serialization.binary import decode_metadata, encode_metadata
from rollup_tracker.serialization.document import (
    metadata_from_document,
    metadata_from_json,
    metadata_to_document,
    metadata_to_json,
)
from rollup_tracker.serialization.stream import StreamInput, StreamOutput
from rollup_tracker.serialization.xcontent import DocumentBuilder, DocumentParser, Token

__all__ = [
    "__version__",
    "DocumentBuilder",
    "DocumentParser",
    "StreamInput",
    "StreamOutput",
    "Token",
    "decode_metadata",
    "encode_metadata",
    "metadata_from_document",
    "metadata_from_json",
    "metadata_to_document",
    "metadata_to_json",
]
