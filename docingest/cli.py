"""
Docingest CLI.

Commands:
    extract    Extract text and embedded images from documents
    compress   Re-encode images at a lower quality
    convert    Convert images to png, jpeg or webp

Examples:
    docingest extract report.pdf notes.docx -o out/
    docingest extract upload.bin --type application/pdf
    docingest compress photo1.png photo2.jpg -q 60 -o out/
    docingest convert *.png -f webp -o out/
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path, PurePath

from pydantic import BaseModel


# =============================================================================
# Report models (--json output)
# =============================================================================


class ItemReport(BaseModel):
    index: int
    input: str
    ok: bool
    reference: str | None = None
    images: list[str] = []
    error: dict | None = None


class BatchReport(BaseModel):
    command: str
    succeeded: int
    failed: int
    items: list[ItemReport]


# =============================================================================
# Helpers
# =============================================================================


def _load_blobs(paths: list[str], media_type: str | None = None):
    """Read input files into MediaBlobs, guessing media types if needed."""
    from docingest.boundary import guess_media_type
    from docingest.extract import MediaBlob

    blobs = []
    for raw in paths:
        path = Path(raw)
        data = path.read_bytes()
        declared = media_type or guess_media_type(path.name)
        blobs.append(MediaBlob(data=data, media_type=declared, filename=path.name))
    return blobs


def _progress(verbose: bool):
    if not verbose:
        return None

    def callback(current: int, total: int) -> None:
        if current:
            print(f"  [{current}/{total}] done", file=sys.stderr)

    return callback


def _output_path(output_dir: Path, name: str, inputs: set[Path]) -> Path:
    """Path for an output file, refusing to overwrite any input file."""
    from docingest.errors import InvalidRequest

    target = output_dir / name
    if target.resolve() in inputs:
        raise InvalidRequest(f"Refusing to overwrite input file {target}")
    return target


def _directory_store(output_dir: Path, inputs: set[Path]):
    """Return an artifact store that writes images into output_dir."""

    def store(image) -> str:  # noqa: ANN001
        target = _output_path(output_dir, image.filename, inputs)
        target.write_bytes(image.data)
        return str(target)

    return store


def _write_extracted(doc, output_dir: Path, text_name: str, inputs: set[Path]):  # noqa: ANN001, ANN202
    """Write a document's text and images; nothing is written if any path is refused."""
    stem = PurePath(text_name).stem
    text_path = _output_path(output_dir, text_name, inputs)
    image_paths = [
        _output_path(output_dir, f"{stem}_image{n}.{image.extension}", inputs)
        for n, image in enumerate(doc.images, start=1)
    ]

    text_path.write_text(doc.text, encoding="utf-8")
    for path, image in zip(image_paths, doc.images):
        path.write_bytes(image.data)
    return str(text_path), [str(path) for path in image_paths]


def _print_failures(result, verbose: bool) -> None:
    for event in result.failures:
        detail = f" ({event.cause})" if verbose and event.cause else ""
        print(f"  [warn] {event.input_id}: {event.message}{detail}", file=sys.stderr)


# =============================================================================
# Commands
# =============================================================================


def cmd_extract(args: argparse.Namespace) -> int:
    """Handle extract command."""
    from docingest.batch import BatchResult, ItemResult, extract_batch
    from docingest.boundary import check_document_upload, check_request_size
    from docingest.errors import IngestError
    from docingest.runtime import get_runtime_config
    from docingest.transform import unique_names

    config = get_runtime_config(parallel_workers=args.workers, verbose=args.verbose)

    try:
        blobs = _load_blobs(args.files, args.type)
        check_request_size(blobs, config)
    except (OSError, IngestError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    # Boundary failures are reported per file, like extraction failures
    rejected: dict[int, IngestError] = {}
    for index, blob in enumerate(blobs):
        try:
            check_document_upload(blob, config)
        except IngestError as e:
            rejected[index] = e

    accepted = [blob for index, blob in enumerate(blobs) if index not in rejected]
    if args.verbose:
        print(f"Extracting {len(accepted)} document(s) [{config.parallel_workers} workers]...")

    extracted = iter(extract_batch(accepted, config, progress_callback=_progress(args.verbose)))
    merged = []
    for index, blob in enumerate(blobs):
        if index in rejected:
            merged.append(ItemResult(index=index, input_id=blob.input_id, error=rejected[index]))
        else:
            item = next(extracted)
            merged.append(ItemResult(index=index, input_id=item.input_id, value=item.value, error=item.error))

    output_dir = Path(args.output) if args.output else None
    if output_dir:
        output_dir.mkdir(parents=True, exist_ok=True)
    inputs = {Path(raw).resolve() for raw in args.files}
    text_names = unique_names(f"{blob.stem}.txt" for blob in blobs)

    reports: list[ItemReport] = []
    for index in range(len(merged)):
        item = merged[index]
        report = ItemReport(index=item.index, input=item.input_id, ok=item.ok)
        if item.ok and output_dir:
            try:
                report.reference, report.images = _write_extracted(
                    item.value, output_dir, text_names[index], inputs
                )
            except IngestError as e:
                item = merged[index] = ItemResult(index=index, input_id=item.input_id, error=e)
                report.ok = False

        if not item.ok:
            report.error = item.event.as_dict()
        elif not output_dir and not args.json:
            if len(blobs) > 1:
                print(f"===== {item.input_id} =====")
            print(item.value.text)
            if item.value.images:
                print(f"[{len(item.value.images)} embedded image(s)]")
        reports.append(report)

    result = BatchResult(items=tuple(merged))
    failed = result.failed
    if args.json:
        print(
            BatchReport(
                command="extract",
                succeeded=len(merged) - failed,
                failed=failed,
                items=reports,
            ).model_dump_json(indent=2)
        )
    else:
        _print_failures(result, args.verbose)
        if output_dir or args.verbose:
            print(f"\nExtracted {len(merged) - failed}/{len(merged)} documents")

    return 0 if failed == 0 else 1


def _cmd_transform(args: argparse.Namespace, command: str) -> int:
    """Shared body of the compress and convert commands."""
    from docingest.batch import transform_batch
    from docingest.boundary import check_image_upload, check_request_size
    from docingest.errors import IngestError
    from docingest.runtime import get_runtime_config
    from docingest.transform import TransformRequest

    try:
        config = get_runtime_config(
            parallel_workers=args.workers,
            compress_format=getattr(args, "output_format", None),
            verbose=args.verbose,
        )
        blobs = _load_blobs(args.files)
        check_request_size(blobs, config)
        for blob in blobs:
            check_image_upload(blob, config)
        if command == "compress":
            request = TransformRequest.compress(blobs, args.quality)
        else:
            request = TransformRequest.convert(blobs, args.format)
    except (OSError, ValueError, IngestError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    output_dir = Path(args.output)
    output_dir.mkdir(parents=True, exist_ok=True)

    if args.verbose:
        print(f"{command.capitalize()}ing {len(blobs)} image(s) [{config.parallel_workers} workers]...")

    result = transform_batch(
        request,
        store=_directory_store(output_dir, {Path(raw).resolve() for raw in args.files}),
        config=config,
        progress_callback=_progress(args.verbose),
    )

    if args.json:
        items = [
            ItemReport(
                index=item.index,
                input=item.input_id,
                ok=item.ok,
                reference=item.value.reference if item.ok else None,
                error=item.event.as_dict() if item.event else None,
            )
            for item in result
        ]
        print(
            BatchReport(
                command=command,
                succeeded=result.succeeded,
                failed=result.failed,
                items=items,
            ).model_dump_json(indent=2)
        )
    else:
        for item in result:
            if item.ok:
                print(f"  [ok] {item.input_id} -> {item.value.reference}")
        _print_failures(result, args.verbose)
        print(f"\n{result.succeeded}/{len(result)} images written to {output_dir}")

    return 0 if result.failed == 0 else 1


def cmd_compress(args: argparse.Namespace) -> int:
    """Handle compress command."""
    return _cmd_transform(args, "compress")


def cmd_convert(args: argparse.Namespace) -> int:
    """Handle convert command."""
    return _cmd_transform(args, "convert")


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-w",
        "--workers",
        type=int,
        default=None,
        help="Parallel workers (default: 4)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print a JSON report instead of text",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Print progress information",
    )


def main(argv: list[str] | None = None) -> int:
    """Main CLI entrypoint."""
    parser = argparse.ArgumentParser(
        prog="docingest",
        description="Extract text from documents and transform images.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # extract
    extract_parser = subparsers.add_parser(
        "extract",
        help="Extract text and embedded images from documents",
    )
    extract_parser.add_argument(
        "files",
        nargs="+",
        help="Documents to extract (pdf, doc, docx, xls, xlsx, txt)",
    )
    extract_parser.add_argument(
        "-t",
        "--type",
        default=None,
        help="Declared media type for every file (default: guessed from extension)",
    )
    extract_parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Write <name>.txt and embedded images to this directory",
    )
    _add_common(extract_parser)

    # compress
    compress_parser = subparsers.add_parser(
        "compress",
        help="Re-encode images at a lower quality",
    )
    compress_parser.add_argument(
        "files",
        nargs="+",
        help="Images to compress",
    )
    compress_parser.add_argument(
        "-q",
        "--quality",
        type=int,
        default=None,
        help="Quality from 1 to 100 (default: 80)",
    )
    compress_parser.add_argument(
        "--output-format",
        choices=["jpeg", "jpg", "webp"],
        default=None,
        help="Lossy format to re-encode into (default: jpeg)",
    )
    compress_parser.add_argument(
        "-o",
        "--output",
        default="compressed",
        help="Directory for compressed images (default: ./compressed)",
    )
    _add_common(compress_parser)

    # convert
    convert_parser = subparsers.add_parser(
        "convert",
        help="Convert images to png, jpeg or webp",
    )
    convert_parser.add_argument(
        "files",
        nargs="+",
        help="Images to convert",
    )
    convert_parser.add_argument(
        "-f",
        "--format",
        required=True,
        help="Target format: png, jpeg (jpg) or webp",
    )
    convert_parser.add_argument(
        "-o",
        "--output",
        default="converted",
        help="Directory for converted images (default: ./converted)",
    )
    _add_common(convert_parser)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "extract":
        return cmd_extract(args)
    elif args.command == "compress":
        return cmd_compress(args)
    elif args.command == "convert":
        return cmd_convert(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
