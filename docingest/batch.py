"""
Batch processing with per-item failure isolation.

Every batch returns exactly one ItemResult per input, in input order.
Items run on a bounded thread pool; each result is written into the
slot of its input index, so completion order never leaks into the
output. A failing item is recorded and the rest keep running.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Callable, Generic, Iterator, Protocol, Sequence, TypeVar

from docingest.errors import FailureEvent, IngestError, InternalError
from docingest.extract import ExtractedDocument, MediaBlob, extract_document
from docingest.runtime import RuntimeConfig, get_global_config
from docingest.transform import (
    TransformedImage,
    TransformRequest,
    output_name,
    target_format,
    transform_one,
    unique_names,
)

class BatchItem(Protocol):
    """Anything run_batch can process: it only needs an input id."""

    @property
    def input_id(self) -> str: ...


T = TypeVar("T")
ItemT = TypeVar("ItemT", bound=BatchItem)

ArtifactStore = Callable[[TransformedImage], str]


@dataclass(frozen=True)
class ItemResult(Generic[T]):
    """Outcome for one batch input: a value or an error, never both."""

    index: int
    input_id: str
    value: T | None = None
    error: IngestError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def event(self) -> FailureEvent | None:
        return self.error.to_event(self.input_id) if self.error else None


@dataclass(frozen=True)
class BatchResult(Generic[T]):
    """Ordered per-item outcomes; len(result) == len(inputs)."""

    items: tuple[ItemResult[T], ...]

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[ItemResult[T]]:
        return iter(self.items)

    def __getitem__(self, index: int) -> ItemResult[T]:
        return self.items[index]

    @property
    def succeeded(self) -> int:
        return sum(1 for item in self.items if item.ok)

    @property
    def failed(self) -> int:
        return len(self.items) - self.succeeded

    @property
    def failures(self) -> list[FailureEvent]:
        return [item.event for item in self.items if item.event is not None]


@dataclass(frozen=True)
class TransformOutcome:
    """A transformed image and the reference it was stored under."""

    reference: str
    image: TransformedImage


TransformResult = BatchResult[TransformOutcome]


@dataclass(frozen=True)
class _NamedImage:
    blob: MediaBlob
    filename: str

    @property
    def input_id(self) -> str:
        return self.blob.input_id


# =============================================================================
# Orchestrator
# =============================================================================


def run_batch(
    items: Sequence[ItemT],
    operation: Callable[[ItemT], T],
    config: RuntimeConfig | None = None,
    *,
    progress_callback: Callable[[int, int], None] | None = None,
) -> BatchResult[T]:
    """
    Apply an operation to every item, isolating failures.

    Args:
        items: Inputs in request order
        operation: Callable applied to each item
        config: Runtime configuration (worker count)
        progress_callback: Progress callback(completed, total)

    Returns:
        BatchResult with one ItemResult per input, in input order
    """
    cfg = config or get_global_config()
    total = len(items)
    slots: list[ItemResult[T] | None] = [None] * total

    if progress_callback:
        progress_callback(0, total)

    workers = min(cfg.parallel_workers, total)

    if workers <= 1:
        for index, item in enumerate(items):
            slots[index] = _run_one(index, item, operation)
            if progress_callback:
                progress_callback(index + 1, total)
    else:
        completed = 0
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {
                executor.submit(_run_one, index, item, operation): index
                for index, item in enumerate(items)
            }
            for future in as_completed(futures):
                slots[futures[future]] = future.result()
                completed += 1
                if progress_callback:
                    progress_callback(completed, total)

    return BatchResult(items=tuple(slots))  # type: ignore[arg-type]


def _run_one(index: int, item: ItemT, operation: Callable[[ItemT], T]) -> ItemResult[T]:
    """Run one item, turning any exception into a recorded failure."""
    try:
        return ItemResult(index=index, input_id=item.input_id, value=operation(item))
    except IngestError as e:
        return ItemResult(index=index, input_id=item.input_id, error=e)
    except Exception as e:
        error = InternalError(f"Unexpected {type(e).__name__}: {e}")
        error.__cause__ = e
        return ItemResult(index=index, input_id=item.input_id, error=error)


# =============================================================================
# Produced interface
# =============================================================================


def transform_batch(
    request: TransformRequest,
    store: ArtifactStore | None = None,
    config: RuntimeConfig | None = None,
    *,
    progress_callback: Callable[[int, int], None] | None = None,
) -> TransformResult:
    """
    Transform every image in a validated request.

    Args:
        request: Images plus a compress/convert operation
        store: Persists a transformed image and returns its reference;
            when omitted the artifact's filename is used as reference
        config: Runtime configuration
        progress_callback: Progress callback(completed, total)

    Returns:
        One TransformOutcome or error per input image, in input order
    """
    cfg = config or get_global_config()

    # Names are fixed up front so same-stem inputs never share an artifact
    target = target_format(request.kind, request.options, cfg)
    names = unique_names(output_name(blob, target) for blob in request.items)
    jobs = [_NamedImage(blob, name) for blob, name in zip(request.items, names)]

    def operation(job: _NamedImage) -> TransformOutcome:
        image = transform_one(job.blob, request.kind, request.options, cfg, filename=job.filename)
        reference = store(image) if store else image.filename
        return TransformOutcome(reference=reference, image=image)

    return run_batch(jobs, operation, cfg, progress_callback=progress_callback)


def extract_batch(
    blobs: Sequence[MediaBlob],
    config: RuntimeConfig | None = None,
    *,
    progress_callback: Callable[[int, int], None] | None = None,
) -> BatchResult[ExtractedDocument]:
    """Extract every document in a multi-file upload, isolating failures."""
    cfg = config or get_global_config()
    return run_batch(
        blobs,
        lambda blob: extract_document(blob, cfg),
        cfg,
        progress_callback=progress_callback,
    )
