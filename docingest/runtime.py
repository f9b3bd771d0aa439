"""
Runtime configuration for docingest.

Holds worker pool sizing, staging location, the legacy Word converter
and the compression policy. A single configuration flows through the
extractors, the transform engine and the batch orchestrator.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass

MB = 1024 * 1024

COMPRESS_FORMATS: frozenset[str] = frozenset({"jpeg", "webp"})


@dataclass
class RuntimeConfig:
    """
    Runtime configuration for extraction and transform operations.

    Attributes:
        parallel_workers: Upper bound on concurrent batch items
        staging_root: Parent directory for staging areas (None = system temp)
        soffice_bin: LibreOffice binary for legacy .doc conversion
        conversion_timeout: Seconds allowed for one LibreOffice conversion
        compress_format: Lossy format every compressed image is re-encoded to
        default_quality: Quality used when a request does not give one
        max_document_bytes: Upload ceiling for a single document
        max_request_bytes: Upload ceiling for a whole request
        verbose: Print progress information in the CLI
    """

    parallel_workers: int = 4

    # Staging
    staging_root: str | None = None
    soffice_bin: str | None = None
    conversion_timeout: float = 120.0

    # Images
    compress_format: str = "jpeg"
    default_quality: int = 80

    # Upload boundary
    max_document_bytes: int = 20 * MB
    max_request_bytes: int = 50 * MB

    # Debug
    verbose: bool = False

    def __post_init__(self):
        """Normalize settings that would otherwise fail later."""
        self.parallel_workers = max(1, self.parallel_workers)
        self.compress_format = self.compress_format.lower()
        if self.compress_format == "jpg":
            self.compress_format = "jpeg"
        if self.compress_format not in COMPRESS_FORMATS:
            raise ValueError(
                f"compress_format must be one of {sorted(COMPRESS_FORMATS)}, "
                f"got {self.compress_format!r}"
            )
        if not 1 <= self.default_quality <= 100:
            raise ValueError(f"default_quality must be in [1, 100], got {self.default_quality}")

    def resolve_soffice(self) -> str | None:
        """Return the LibreOffice binary to use, or None if none is installed."""
        if self.soffice_bin:
            return self.soffice_bin
        return shutil.which("soffice") or shutil.which("libreoffice")


def get_runtime_config(
    parallel_workers: int | None = None,
    staging_root: str | None = None,
    soffice_bin: str | None = None,
    compress_format: str | None = None,
    verbose: bool = False,
) -> RuntimeConfig:
    """
    Create a runtime configuration with sensible defaults.

    Args:
        parallel_workers: Override the batch worker count
        staging_root: Override the staging parent directory
        soffice_bin: Override the LibreOffice binary
        compress_format: Override the compression output format
        verbose: Enable verbose output

    Returns:
        Configured RuntimeConfig instance
    """
    kwargs: dict = {"verbose": verbose}

    if parallel_workers is not None:
        kwargs["parallel_workers"] = parallel_workers
    if staging_root:
        kwargs["staging_root"] = staging_root
    if soffice_bin:
        kwargs["soffice_bin"] = soffice_bin
    if compress_format:
        kwargs["compress_format"] = compress_format

    return RuntimeConfig(**kwargs)


# Global config instance (can be set by the CLI or an embedding service)
_global_config: RuntimeConfig | None = None


def set_global_config(config: RuntimeConfig) -> None:
    """Set the global runtime configuration."""
    global _global_config
    _global_config = config


def get_global_config() -> RuntimeConfig:
    """Get the global runtime configuration, creating default if needed."""
    global _global_config
    if _global_config is None:
        _global_config = RuntimeConfig()
    return _global_config
