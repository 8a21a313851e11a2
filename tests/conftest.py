"""
Test Configuration and Fixtures
"""
import io
import os

import pytest
from PIL import Image

from camnote import create_app, db
from camnote.models import Document


@pytest.fixture(scope='session')
def app():
    """Create application for testing"""
    os.environ.pop('RESET_DB', None)
    app = create_app('testing')

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def upload_dir(app, tmp_path):
    """Point uploads at a fresh directory so leftovers can be counted"""
    path = tmp_path / "uploads"
    previous = app.config['UPLOAD_FOLDER']
    app.config['UPLOAD_FOLDER'] = str(path)
    yield path
    app.config['UPLOAD_FOLDER'] = previous


@pytest.fixture(scope='function')
def client(app, upload_dir):
    """Create test client"""
    yield app.test_client()
    with app.app_context():
        Document.query.delete()
        db.session.commit()


def make_image(width=100, height=150, color=(200, 30, 30), fmt='PNG', mode='RGB'):
    """Encode a solid-colour image"""
    if mode == 'RGBA' and len(color) == 3:
        color = color + (255,)
    img = Image.new(mode, (width, height), color)
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


def page_colour(page):
    """RGB of the centre pixel of the single raw image drawn on a PDF page"""
    xobjects = page['/Resources']['/XObject']
    image = next(iter(xobjects.values())).get_object()
    width, height = int(image['/Width']), int(image['/Height'])
    data = image.get_data()
    offset = ((height // 2) * width + width // 2) * 3
    return tuple(data[offset:offset + 3])


@pytest.fixture
def png_bytes():
    return make_image()


@pytest.fixture
def jpeg_bytes():
    return make_image(fmt='JPEG')
