"""Tests for upload boundary checks."""

import pytest

from docingest import MediaBlob, RuntimeConfig, UploadRejected
from docingest.boundary import (
    OLE2_SIGNATURE,
    check_document_upload,
    check_image_upload,
    check_request_size,
    guess_media_type,
    signature_matches,
)
from docingest.classify import DocumentFormat


@pytest.fixture
def small_limits() -> RuntimeConfig:
    return RuntimeConfig(max_document_bytes=64, max_request_bytes=100)


class TestGuessMediaType:
    @pytest.mark.parametrize(
        "filename,expected",
        [
            ("report.PDF", "application/pdf"),
            ("old.doc", "application/msword"),
            ("book.xlsx", "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"),
            ("notes.txt", "text/plain"),
            ("photo.png", "image/png"),
            ("mystery", ""),
        ],
    )
    def test_guess(self, filename, expected):
        assert guess_media_type(filename) == expected


class TestDocumentUpload:
    def test_accepts_matching_pdf(self, pdf_bytes):
        check_document_upload(MediaBlob(pdf_bytes, "application/pdf", "a.pdf"))

    def test_size_limit(self, small_limits):
        blob = MediaBlob(b"x" * 65, "text/plain", "big.txt")

        with pytest.raises(UploadRejected, match="exceeds"):
            check_document_upload(blob, small_limits)

    def test_size_limit_is_inclusive(self, small_limits):
        check_document_upload(MediaBlob(b"x" * 64, "text/plain", "edge.txt"), small_limits)

    @pytest.mark.parametrize("filename", ["deck.pptx", "script.exe", "archive.zip"])
    def test_extension_allow_list(self, filename):
        with pytest.raises(UploadRejected, match="not allowed"):
            check_document_upload(MediaBlob(b"hello", "text/plain", filename))

    def test_missing_extension_is_allowed(self):
        check_document_upload(MediaBlob(b"hello", "text/plain", "README"))

    def test_signature_mismatch(self):
        blob = MediaBlob(b"hello world", "application/pdf", "fake.pdf")

        with pytest.raises(UploadRejected, match="does not look like pdf"):
            check_document_upload(blob)

    def test_unsupported_type_left_to_classifier(self):
        check_document_upload(MediaBlob(b"anything", "application/x-unknown", "x.txt"))


class TestSignatures:
    def test_pdf_header_after_junk(self):
        assert signature_matches(DocumentFormat.PDF, b"\r\n  %PDF-1.4")

    def test_legacy_formats_accept_ole2_and_zip(self):
        assert signature_matches(DocumentFormat.DOC, OLE2_SIGNATURE + b"rest")
        assert signature_matches(DocumentFormat.XLS, b"PK\x03\x04")
        assert not signature_matches(DocumentFormat.XLS, b"<html>")

    def test_ooxml_requires_zip(self, xlsx_bytes):
        assert signature_matches(DocumentFormat.XLSX, xlsx_bytes)
        assert not signature_matches(DocumentFormat.DOCX, OLE2_SIGNATURE)

    def test_text_always_matches(self):
        assert signature_matches(DocumentFormat.TEXT, b"\x00\xff")


class TestImageAndRequest:
    def test_image_type_allow_list(self, png_bytes):
        check_image_upload(MediaBlob(png_bytes, "image/png", "a.png"))

        with pytest.raises(UploadRejected):
            check_image_upload(MediaBlob(png_bytes, "application/pdf", "a.pdf"))

    def test_undeclared_image_type_passes(self, png_bytes):
        check_image_upload(MediaBlob(png_bytes, "", "blob"))

    def test_image_size_limit(self, small_limits):
        with pytest.raises(UploadRejected):
            check_image_upload(MediaBlob(b"x" * 100, "image/png", "a.png"), small_limits)

    def test_request_ceiling(self, small_limits):
        blobs = [MediaBlob(b"x" * 50, "text/plain", f"{i}.txt") for i in range(2)]
        check_request_size(blobs, small_limits)

        blobs.append(MediaBlob(b"x", "text/plain", "one-more.txt"))
        with pytest.raises(UploadRejected, match="Request size"):
            check_request_size(blobs, small_limits)
