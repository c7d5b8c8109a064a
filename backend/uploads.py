"""
Syllabus file handling: validation, data URIs and source-text extraction
"""

import base64
import binascii
import io
import logging
import re
from typing import Tuple

import PyPDF2
from PyPDF2.errors import PdfReadError

from backend.errors import InvalidRequest
from utils.config import ACCEPTED_MIME_TYPES, MAX_UPLOAD_BYTES

logger = logging.getLogger(__name__)

_DATA_URI = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<data>.*)$", re.DOTALL)


def validate_upload(file_name: str, mime_type: str, size: int):
    """Check type and size before anything is sent to the generator"""
    if not file_name:
        raise InvalidRequest("Please choose a file to upload.")
    if mime_type not in ACCEPTED_MIME_TYPES:
        raise InvalidRequest("Only .pdf and .txt files are accepted.")
    if size <= 0:
        raise InvalidRequest("The selected file is empty.")
    if size > MAX_UPLOAD_BYTES:
        raise InvalidRequest(f"File size should be less than {MAX_UPLOAD_BYTES // (1024 * 1024)} MB.")


def to_data_uri(data: bytes, mime_type: str) -> str:
    """data:<mime>;base64,<data>"""
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def parse_data_uri(uri: str) -> Tuple[str, bytes]:
    """Split a base64 data URI into (mime type, raw bytes)"""
    match = _DATA_URI.match(uri or "")
    if not match:
        raise InvalidRequest("Expected a data URI of the form data:<mime>;base64,<data>.")
    try:
        data = base64.b64decode(match.group("data"), validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidRequest(f"Data URI is not valid base64: {e}")
    return match.group("mime"), data


def extract_pdf_text(data: bytes) -> str:
    """Concatenate the text of every page of a PDF"""
    reader = PyPDF2.PdfReader(io.BytesIO(data))
    parts = []
    for page_number, page in enumerate(reader.pages, 1):
        text = page.extract_text() or ""
        if text.strip():
            parts.append(text.strip())
        else:
            logger.debug(f"PDF page {page_number} has no extractable text")
    return "\n\n".join(parts)


def extract_source_text(data: bytes, mime_type: str) -> str:
    """
    Plain text of an uploaded syllabus, kept so later quizzes, plans and
    tutor answers can be grounded in it.
    """
    if mime_type == "text/plain":
        return data.decode("utf-8", errors="replace")
    if mime_type == "application/pdf":
        try:
            return extract_pdf_text(data)
        except (PdfReadError, ValueError) as e:
            raise InvalidRequest(f"Could not read the PDF: {e}")
    raise InvalidRequest("Only .pdf and .txt files are accepted.")
