"""
docingest: document extraction and image transforms for uploaded files.

Usage:
    from docingest import MediaBlob, extract_document, transform_batch, TransformRequest

    doc = extract_document(MediaBlob(data, "application/pdf", "report.pdf"))
    print(doc.text)

    request = TransformRequest.convert(images, "webp")
    for item in transform_batch(request):
        print(item.index, item.ok, item.value.reference if item.ok else item.event)
"""

from __future__ import annotations

__version__ = "0.1.0"

from .classify import DocumentFormat, ExtractorKind, ImageFormat, classify, classify_image
from .errors import (
    ExtractionError,
    FailureEvent,
    IngestError,
    InternalError,
    InvalidRequest,
    StagingFailure,
    TransformError,
    UnsupportedFormat,
    UploadRejected,
)
from .extract import EmbeddedImage, ExtractedDocument, MediaBlob, extract_document
from .runtime import RuntimeConfig, get_global_config, get_runtime_config, set_global_config
from .transform import TargetFormat, TransformKind, TransformRequest, TransformedImage
from .batch import (
    BatchResult,
    ItemResult,
    TransformOutcome,
    TransformResult,
    extract_batch,
    run_batch,
    transform_batch,
)

__all__ = [
    "__version__",
    # Classification
    "DocumentFormat",
    "ExtractorKind",
    "classify",
    "ImageFormat",
    "classify_image",
    # Extraction
    "MediaBlob",
    "ExtractedDocument",
    "EmbeddedImage",
    "extract_document",
    "extract_batch",
    # Transforms
    "TargetFormat",
    "TransformKind",
    "TransformRequest",
    "TransformedImage",
    "TransformOutcome",
    "TransformResult",
    "transform_batch",
    # Batches
    "BatchResult",
    "ItemResult",
    "run_batch",
    # Config
    "RuntimeConfig",
    "get_runtime_config",
    "get_global_config",
    "set_global_config",
    # Errors
    "IngestError",
    "UnsupportedFormat",
    "ExtractionError",
    "TransformError",
    "InvalidRequest",
    "UploadRejected",
    "StagingFailure",
    "InternalError",
    "FailureEvent",
]
