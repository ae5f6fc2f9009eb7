"""Syllabus file uploads: validation and text extraction."""

import io
import logging

import pdfplumber
from werkzeug.utils import secure_filename

from study_companion.errors import InvalidRequestError, PayloadTooLargeError
from study_companion.services.syllabus_service import MAX_SYLLABUS_TEXT_LEN

logger = logging.getLogger('study_companion.uploads')

ALLOWED_SYLLABUS_EXTENSIONS = {'pdf', 'txt'}
ALLOWED_SYLLABUS_MIME_TYPES = {
    'pdf': {'application/pdf', 'application/x-pdf', 'application/octet-stream'},
    'txt': {'text/plain', 'application/octet-stream'},
}
MAX_SYLLABUS_UPLOAD_BYTES = 20 * 1024 * 1024
PDF_SIGNATURE = b'%PDF-'


def allowed_file(filename, allowed_extensions):
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in allowed_extensions


def file_extension(filename):
    return filename.rsplit('.', 1)[1].lower() if '.' in filename else ''


def extract_pdf_text(data):
    """Return the text of every page that has any, separated by a blank line."""
    try:
        with pdfplumber.open(io.BytesIO(data)) as pdf:
            pages = [(page.extract_text() or '').strip() for page in pdf.pages]
        return '\n\n'.join(page for page in pages if page)
    except Exception as exc:
        logger.info(f"PDF text extraction failed: {exc}")
        raise InvalidRequestError('Uploaded PDF file is invalid.') from exc


def extract_plain_text(data):
    return data.decode('utf-8', errors='replace').replace('\r\n', '\n').strip()


def extract_syllabus_upload(uploaded_file, max_bytes=MAX_SYLLABUS_UPLOAD_BYTES):
    """Validate an uploaded syllabus file and return ``(safe_name, text)``.

    PDF and plain-text files are accepted. Raises ``InvalidRequestError`` for a
    missing, mistyped, malformed or textless file and ``PayloadTooLargeError``
    above ``max_bytes``.
    """
    if not uploaded_file or not uploaded_file.filename:
        raise InvalidRequestError('Syllabus file is required')
    safe_name = secure_filename(uploaded_file.filename)
    if not safe_name or not allowed_file(safe_name, ALLOWED_SYLLABUS_EXTENSIONS):
        raise InvalidRequestError('Invalid syllabus file. Please upload a PDF or TXT file.')
    extension = file_extension(safe_name)
    mime_type = str(uploaded_file.mimetype or '').lower()
    if mime_type not in ALLOWED_SYLLABUS_MIME_TYPES[extension]:
        raise InvalidRequestError('Invalid syllabus content type')

    data = uploaded_file.stream.read(max_bytes + 1)
    if not data:
        raise InvalidRequestError('Uploaded file is empty')
    if len(data) > max_bytes:
        raise PayloadTooLargeError(f"Syllabus file exceeds {max_bytes // (1024 * 1024)}MB")

    if extension == 'pdf':
        if not data.startswith(PDF_SIGNATURE):
            raise InvalidRequestError('Uploaded PDF file is invalid.')
        text = extract_pdf_text(data)
    else:
        text = extract_plain_text(data)
    if not text:
        raise InvalidRequestError('No text could be extracted from the file')
    return safe_name, text[:MAX_SYLLABUS_TEXT_LEN]
