import logging
from io import BytesIO
from typing import Optional

from pdfminer.pdfpage import PDFPage

logger = logging.getLogger(__name__)


def count_pdf_pages(content: bytes) -> Optional[int]:
    """Number of pages in a PDF, or None when the document can't be parsed."""
    try:
        count = sum(1 for _ in PDFPage.get_pages(BytesIO(content), check_extractable=False))
    except Exception as e:
        # pdfminer raises a wide range of parser errors on damaged files
        logger.warning("Could not count PDF pages: %s", e)
        return None
    return count or None
