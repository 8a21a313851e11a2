"""
PDF composition and protection tests
"""
import io

import PyPDF2
import pytest

from camnote.errors import CompositionError
from camnote.services import imaging, pdf_service
from conftest import make_image, page_colour


def read_pdf(data, password=None):
    reader = PyPDF2.PdfReader(io.BytesIO(data))
    if password is not None:
        assert reader.decrypt(password)
    return reader


def sizes(reader):
    return [(float(p.mediabox.width), float(p.mediabox.height)) for p in reader.pages]


class TestCompose:

    def test_page_per_image_in_order(self):
        pages = [
            imaging.normalize(make_image(100, 150, color=(255, 0, 0))),
            imaging.normalize(make_image(120, 80, color=(0, 255, 0), fmt='JPEG')),
            imaging.normalize(make_image(60, 90, color=(0, 0, 255))),
        ]
        reader = read_pdf(pdf_service.compose(pages, title='Scans'))
        assert sizes(reader) == [(100, 150), (120, 80), (60, 90)]

    def test_same_size_pages_keep_their_content(self):
        colours = [(0, 0, 255), (255, 0, 0), (0, 255, 0), (255, 255, 0)]
        pages = [imaging.normalize(make_image(40, 40, color=c)) for c in colours]
        reader = read_pdf(pdf_service.compose(pages))
        assert [page_colour(p) for p in reader.pages] == colours

    def test_metadata(self, png_bytes):
        data = pdf_service.compose([imaging.normalize(png_bytes)], title='Test', creator='Unit')
        meta = read_pdf(data).metadata
        assert meta.title == 'Test'
        assert meta.author == 'Unit'

    def test_default_title(self, png_bytes):
        data = pdf_service.compose([imaging.normalize(png_bytes)])
        assert read_pdf(data).metadata.title == pdf_service.DEFAULT_TITLE

    def test_single_page_allowed(self, png_bytes):
        reader = read_pdf(pdf_service.compose([imaging.normalize(png_bytes)]))
        assert len(reader.pages) == 1

    def test_corrupt_page_is_skipped(self, png_bytes):
        good = imaging.normalize(png_bytes)
        bad = imaging.NormalizedImage(data=b'broken', format='PNG', width=10, height=10)
        reader = read_pdf(pdf_service.compose([bad, good]))
        assert sizes(reader) == [(100, 150)]

    def test_nothing_embeddable(self):
        bad = imaging.NormalizedImage(data=b'broken', format='PNG', width=10, height=10)
        with pytest.raises(CompositionError):
            pdf_service.compose([bad])

    def test_rgba_page(self):
        page = imaging.normalize(make_image(30, 40, color=(10, 20, 30, 100), mode='RGBA'))
        reader = read_pdf(pdf_service.compose([page]))
        assert sizes(reader) == [(30, 40)]


class TestProtect:

    def test_protected_pdf_needs_password(self, png_bytes):
        pdf = pdf_service.compose([imaging.normalize(png_bytes)], title='Secret')
        protected = pdf_service.protect(pdf, 'hunter2')

        reader = PyPDF2.PdfReader(io.BytesIO(protected))
        assert reader.is_encrypted
        assert not reader.decrypt('wrong-password')

        reader = read_pdf(protected, password='hunter2')
        assert sizes(reader) == [(100, 150)]

    def test_empty_password_rejected(self, png_bytes):
        pdf = pdf_service.compose([imaging.normalize(png_bytes)])
        with pytest.raises(ValueError):
            pdf_service.protect(pdf, '')
