"""Tests for media type classification and extraction dispatch."""

import pytest

from docingest import MediaBlob, UnsupportedFormat, extract_document
from docingest.classify import (
    DOCUMENT_MEDIA_TYPES,
    IMAGE_MEDIA_TYPES,
    DocumentFormat,
    ExtractorKind,
    ImageFormat,
    classify,
    classify_image,
    require_image,
    require_supported,
)


class TestClassify:
    @pytest.mark.parametrize(
        "media_type,expected",
        [
            ("application/pdf", DocumentFormat.PDF),
            ("application/msword", DocumentFormat.DOC),
            (
                "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
                DocumentFormat.DOCX,
            ),
            ("application/vnd.ms-excel", DocumentFormat.XLS),
            (
                "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
                DocumentFormat.XLSX,
            ),
            ("text/plain", DocumentFormat.TEXT),
        ],
    )
    def test_supported_types(self, media_type, expected):
        assert classify(media_type) is expected

    def test_parameters_and_case_are_ignored(self):
        assert classify("Text/Plain; charset=utf-8") is DocumentFormat.TEXT

    @pytest.mark.parametrize(
        "media_type",
        [
            "",
            "image/png",
            "application/vnd.ms-powerpoint",
            "application/vnd.openxmlformats-officedocument.presentationml.presentation",
            "application/octet-stream",
        ],
    )
    def test_unknown_types_are_unsupported(self, media_type):
        assert classify(media_type) is DocumentFormat.UNSUPPORTED

    def test_require_supported_raises_client_error(self):
        with pytest.raises(UnsupportedFormat) as excinfo:
            require_supported("application/zip")
        assert excinfo.value.client_error is True
        assert excinfo.value.retryable is False
        assert excinfo.value.media_type == "application/zip"

    def test_every_supported_format_has_a_family(self):
        for fmt in DOCUMENT_MEDIA_TYPES.values():
            assert isinstance(fmt.kind, ExtractorKind)
        assert DocumentFormat.UNSUPPORTED.kind is None

    def test_legacy_flags(self):
        assert DocumentFormat.DOC.legacy
        assert DocumentFormat.XLS.legacy
        assert not DocumentFormat.DOCX.legacy


class TestClassifyImage:
    @pytest.mark.parametrize(
        "media_type,expected",
        [
            ("image/png", ImageFormat.PNG),
            ("image/jpeg", ImageFormat.JPEG),
            ("image/jpg", ImageFormat.JPEG),
            ("IMAGE/WEBP", ImageFormat.WEBP),
            ("image/gif", ImageFormat.GIF),
            ("image/bmp", ImageFormat.BMP),
            ("image/tiff; q=1", ImageFormat.TIFF),
        ],
    )
    def test_supported_images(self, media_type, expected):
        assert classify_image(media_type) is expected

    @pytest.mark.parametrize("media_type", ["", "image/svg+xml", "application/pdf", "text/plain"])
    def test_other_types_are_unsupported(self, media_type):
        assert classify_image(media_type) is ImageFormat.UNSUPPORTED

    def test_families_do_not_overlap(self):
        for media_type in IMAGE_MEDIA_TYPES:
            assert classify(media_type) is DocumentFormat.UNSUPPORTED
        for media_type in DOCUMENT_MEDIA_TYPES:
            assert classify_image(media_type) is ImageFormat.UNSUPPORTED

    def test_require_image_raises(self):
        assert require_image("image/png") is ImageFormat.PNG

        with pytest.raises(UnsupportedFormat) as excinfo:
            require_image("application/pdf")
        assert excinfo.value.media_type == "application/pdf"


class TestDispatch:
    def test_unsupported_type_never_reaches_a_parser(self, monkeypatch):
        def fail(*args, **kwargs):
            raise AssertionError("parser invoked for unsupported type")

        monkeypatch.setattr("docingest.extract._dispatch", fail)

        with pytest.raises(UnsupportedFormat):
            extract_document(MediaBlob(b"%PDF-1.7", "application/x-pdf", "x.pdf"))

    def test_unexpected_fault_becomes_internal_extraction_error(self, monkeypatch):
        from docingest import ExtractionError

        def boom(data):
            raise ZeroDivisionError("bug")

        monkeypatch.setattr("docingest.extract.text.extract_text", boom)

        with pytest.raises(ExtractionError) as excinfo:
            extract_document(MediaBlob(b"hello", "text/plain", "a.txt"))
        assert excinfo.value.cause == ExtractionError.INTERNAL
        assert excinfo.value.format == "txt"
