import io

import pytest
from werkzeug.datastructures import FileStorage

from study_companion.errors import InvalidRequestError, PayloadTooLargeError
from study_companion.services import upload_service


class _FakePage:
    def __init__(self, text):
        self.text = text

    def extract_text(self):
        return self.text


class _FakePdf:
    def __init__(self, pages):
        self.pages = pages

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False


class _FakePdfplumber:
    def __init__(self, pages=None, error=None):
        self.pages = pages or []
        self.error = error
        self.opened = []

    def open(self, stream):
        self.opened.append(stream.read())
        if self.error is not None:
            raise self.error
        return _FakePdf(self.pages)


def _upload(data, filename, content_type):
    return FileStorage(stream=io.BytesIO(data), filename=filename, content_type=content_type)


def test_pdf_pages_are_joined_with_blank_lines(monkeypatch):
    fake = _FakePdfplumber([_FakePage('Unit 1: Limits'), _FakePage(None), _FakePage('Unit 2: Derivatives')])
    monkeypatch.setattr(upload_service, 'pdfplumber', fake)

    name, text = upload_service.extract_syllabus_upload(_upload(b'%PDF-1.4 body', '../Calc Syllabus.pdf', 'application/pdf'))

    assert name == 'Calc_Syllabus.pdf'
    assert text == 'Unit 1: Limits\n\nUnit 2: Derivatives'
    assert fake.opened == [b'%PDF-1.4 body']


def test_plain_text_upload_is_decoded():
    name, text = upload_service.extract_syllabus_upload(_upload(b'Week 1\r\nIntro\r\n', 'week.txt', 'text/plain'))

    assert name == 'week.txt'
    assert text == 'Week 1\nIntro'


@pytest.mark.parametrize('data, filename, content_type', [
    (b'%PDF-1.4', '', 'application/pdf'),
    (b'%PDF-1.4', 'slides.pptx', 'application/pdf'),
    (b'%PDF-1.4', 'syllabus.pdf', 'image/png'),
    (b'not a pdf', 'syllabus.pdf', 'application/pdf'),
    (b'', 'syllabus.txt', 'text/plain'),
    (b'   \n  ', 'syllabus.txt', 'text/plain'),
])
def test_invalid_uploads_are_rejected(data, filename, content_type):
    with pytest.raises(InvalidRequestError):
        upload_service.extract_syllabus_upload(_upload(data, filename, content_type))


def test_missing_file_is_rejected():
    with pytest.raises(InvalidRequestError):
        upload_service.extract_syllabus_upload(None)


def test_unreadable_pdf_is_rejected(monkeypatch):
    monkeypatch.setattr(upload_service, 'pdfplumber', _FakePdfplumber(error=ValueError('broken xref')))

    with pytest.raises(InvalidRequestError, match='Uploaded PDF file is invalid.'):
        upload_service.extract_syllabus_upload(_upload(b'%PDF-1.7 junk', 'syllabus.pdf', 'application/pdf'))


def test_oversized_upload_is_rejected():
    with pytest.raises(PayloadTooLargeError):
        upload_service.extract_syllabus_upload(_upload(b'x' * 11, 'syllabus.txt', 'text/plain'), max_bytes=10)
