# app/services/certificate.py
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Protocol, Union

from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from app.core.config import settings
from app.models.course import Course
from app.models.user import User

logger = logging.getLogger(__name__)


class CertificateIssuer(Protocol):
    """Emits a durable certificate for a finished course and returns its reference."""

    def issue(self, user: User, course: Course) -> str: ...


class PdfCertificateIssuer:
    """Renders certificates as PDF files under the storage directory."""

    def __init__(
        self,
        output_dir: Optional[Union[str, Path]] = None,
        url_prefix: Optional[str] = None,
    ):
        # files land in the /storage mount unless told otherwise
        self.output_dir = (
            Path(output_dir)
            if output_dir is not None
            else settings.storage_path / settings.certificate_folder
        )
        self.url_prefix = (url_prefix or f"/storage/{settings.certificate_folder}").rstrip("/")

    def issue(self, user: User, course: Course) -> str:
        self.output_dir.mkdir(parents=True, exist_ok=True)

        issued_at = datetime.now(timezone.utc)
        filename = (
            f"certificate_{user.id}_{course.id}_{int(issued_at.timestamp())}.pdf"
        )
        file_path = self.output_dir / filename

        self._render(file_path, user, course, issued_at)

        logger.info(
            f"Certificate issued for user {user.id} course {course.id}: {file_path}"
        )
        return f"{self.url_prefix}/{filename}"

    def _render(
        self, file_path: Path, user: User, course: Course, issued_at: datetime
    ) -> None:
        width, height = landscape(A4)
        pdf = canvas.Canvas(str(file_path), pagesize=landscape(A4))
        pdf.setTitle(f"Certificate - {course.title}")

        pdf.setLineWidth(3)
        pdf.rect(15 * mm, 15 * mm, width - 30 * mm, height - 30 * mm)

        pdf.setFont("Helvetica-Bold", 32)
        pdf.drawCentredString(width / 2, height - 50 * mm, "CERTIFICATE OF COMPLETION")

        pdf.setFont("Helvetica", 16)
        pdf.drawCentredString(width / 2, height - 75 * mm, "This is to certify that")

        pdf.setFont("Helvetica-Bold", 24)
        pdf.drawCentredString(
            width / 2, height - 92 * mm, f"{user.full_name} ({user.username})"
        )

        pdf.setFont("Helvetica", 16)
        pdf.drawCentredString(
            width / 2, height - 110 * mm, "has successfully completed the course"
        )

        pdf.setFont("Helvetica-Bold", 22)
        pdf.drawCentredString(width / 2, height - 127 * mm, course.title)

        pdf.setFont("Helvetica", 14)
        pdf.drawCentredString(
            width / 2, height - 145 * mm, f"Instructor: {course.instructor}"
        )
        pdf.drawCentredString(
            width / 2,
            height - 155 * mm,
            f"Date of Completion: {issued_at.strftime('%B %d, %Y')}",
        )

        pdf.showPage()
        pdf.save()


def get_certificate_issuer() -> CertificateIssuer:
    return PdfCertificateIssuer()
