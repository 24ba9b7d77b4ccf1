import os

import pytest
from conftest import make_pdf, make_png

from easyprint.models.enums import UploadFolder
from easyprint.services.uploads import MB, UploadError, UploadService
from easyprint.utils.pdf_reader import count_pdf_pages


def test_pdf_pages_are_counted(media_root):
    result = UploadService(media_root, "/media").save(make_pdf(3), "Thesis Final.pdf", "application/pdf")
    assert result["pages"] == 3
    assert result["file_name"] == "Thesis Final.pdf"
    assert result["url"].startswith("/media/documents/")
    assert result["url"].endswith("_Thesis_Final.pdf")
    stored = os.path.join(media_root, "documents", result["url"].rsplit("/", 1)[1])
    assert os.path.exists(stored)


def test_unreadable_pdf_counts_as_one_page(media_root):
    assert count_pdf_pages(b"%PDF-1.4 this is not really a pdf") is None
    result = UploadService(media_root).save(b"%PDF-1.4 garbage", "broken.pdf", "application/pdf")
    assert result["pages"] == 1


def test_word_and_image_documents_are_one_page(media_root):
    service = UploadService(media_root)
    assert service.save(b"PK\x03\x04 docx bytes", "essay.docx", "application/octet-stream")["pages"] == 1
    assert service.save(make_png(), "poster.PNG", "image/png")["pages"] == 1


def test_unsupported_document_type(media_root):
    with pytest.raises(UploadError) as exc:
        UploadService(media_root).save(b"MZ...", "setup.exe", "application/octet-stream")
    assert str(exc.value) == "File type .exe is not supported"


def test_document_size_limit(media_root):
    with pytest.raises(UploadError) as exc:
        UploadService(media_root).save(b"0" * (10 * MB + 1), "big.pdf", "application/pdf")
    assert "10MB" in str(exc.value)


def test_empty_upload(media_root):
    with pytest.raises(UploadError):
        UploadService(media_root).save(b"", "empty.pdf", "application/pdf")


def test_payment_screenshot_must_be_an_image(media_root):
    service = UploadService(media_root)
    result = service.save(make_png(), "gcash.png", "image/png", UploadFolder.PAYMENTS)
    assert result["url"].startswith("/media/payments/")

    with pytest.raises(UploadError):
        service.save(make_pdf(1), "receipt.pdf", "application/pdf", UploadFolder.PAYMENTS)
    with pytest.raises(UploadError):
        service.save(b"not an image", "fake.png", "image/png", UploadFolder.PAYMENTS)


def test_payment_screenshot_size_limit(media_root):
    with pytest.raises(UploadError) as exc:
        UploadService(media_root).save(b"0" * (5 * MB + 1), "huge.png", "image/png", "payments")
    assert str(exc.value) == "Payment screenshot must be less than 5MB"


def test_delete_removes_only_stored_files(media_root):
    service = UploadService(media_root, "/media")
    url = service.save(make_pdf(1), "notes.pdf", "application/pdf")["url"]
    stored = os.path.join(media_root, "documents", url.rsplit("/", 1)[1])

    assert service.delete(url) is True
    assert not os.path.exists(stored)
    assert service.delete(url) is False
    assert service.delete("https://cdn.example.com/notes.pdf") is False
    assert service.delete("/media/../../etc/passwd") is False
