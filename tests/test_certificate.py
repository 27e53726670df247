"""Tests for PDF certificate rendering."""

import main
from app.core.config import settings
from app.services.certificate import PdfCertificateIssuer
from app.utils.file_upload import FileUploadService


def test_issue_writes_pdf(tmp_path, make_user, make_course) -> None:
    user = make_user()
    course = make_course()
    issuer = PdfCertificateIssuer(output_dir=str(tmp_path), url_prefix="/storage/certificates/")

    url = issuer.issue(user, course)

    files = list(tmp_path.iterdir())
    assert len(files) == 1
    assert files[0].name.startswith(f"certificate_{user.id}_{course.id}_")
    assert files[0].read_bytes().startswith(b"%PDF")
    assert url == f"/storage/certificates/{files[0].name}"


def test_default_location_is_served_by_storage_mount(
    tmp_path, monkeypatch, make_user, make_course
) -> None:
    """Certificates are written inside the upload directory mounted at /storage."""
    monkeypatch.setattr(settings, "upload_dir", str(tmp_path))
    monkeypatch.setattr(settings, "certificate_folder", "awards")
    user = make_user()
    course = make_course()

    url = PdfCertificateIssuer().issue(user, course)

    relative = url.removeprefix("/storage/")
    assert relative.startswith("awards/")
    assert (tmp_path / relative).is_file()


def test_storage_paths_share_one_base() -> None:
    assert main.STORAGE_DIR == settings.storage_path
    assert FileUploadService().base_storage_path == settings.storage_path
    assert settings.storage_path.is_absolute()
