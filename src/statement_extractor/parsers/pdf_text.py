"""PDF text extraction adapter using pypdf.

The extraction engine only consumes plain text. This thin wrapper lets the
API accept a raw statement PDF and hand its text layer to the engine without
the engine ever depending on a PDF library.
"""

import io
import logging

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from statement_extractor.core.exceptions import PDFExtractionError

logger = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF"


class PDFTextExtractor:
    """Pull the text layer out of a statement PDF, in memory.

    Example:
        >>> extractor = PDFTextExtractor()
        >>> text = extractor.extract_text(pdf_bytes, password="secret")
    """

    # Pages with less text than this are treated as blank (scans, separators).
    MIN_PAGE_CHARS = 3

    def extract_text(self, pdf_bytes: bytes, password: str | None = None) -> str:
        """Extract the text of every page, joined by newlines.

        Args:
            pdf_bytes: PDF file content as bytes
            password: Optional password for encrypted PDFs

        Returns:
            Full text content of the PDF

        Raises:
            PDFExtractionError: PDF_001 corrupted, PDF_002 password required,
                PDF_003 incorrect password, PDF_004 no text layer
        """
        if not pdf_bytes or not pdf_bytes.startswith(PDF_MAGIC):
            raise PDFExtractionError("PDF_001", details="Missing %PDF header")

        normalized_password = password.strip() if isinstance(password, str) else None
        if normalized_password == "":
            normalized_password = None

        try:
            reader = PdfReader(io.BytesIO(pdf_bytes))
        except (PdfReadError, ValueError, OSError) as e:
            raise PDFExtractionError("PDF_001", details=str(e)) from e

        if reader.is_encrypted:
            self._decrypt(reader, normalized_password)

        try:
            texts = [(page.extract_text() or "").strip() for page in reader.pages]
        except (PdfReadError, ValueError, KeyError) as e:
            raise PDFExtractionError("PDF_001", details=str(e)) from e

        pages = [t for t in texts if len(t) >= self.MIN_PAGE_CHARS]
        if not pages:
            raise PDFExtractionError("PDF_004")

        logger.info(
            "Extracted PDF text",
            extra={"pages": len(texts), "text_pages": len(pages)},
        )
        return "\n".join(pages)

    @staticmethod
    def _decrypt(reader: PdfReader, password: str | None) -> None:
        # Some PDFs are encrypted but use an empty user password.
        try:
            ok = reader.decrypt(password or "")
        except (PdfReadError, NotImplementedError) as e:
            raise PDFExtractionError("PDF_001", details=str(e)) from e

        if not ok:
            if not password:
                raise PDFExtractionError("PDF_002")
            raise PDFExtractionError("PDF_003")
