"""
Text extraction adapter tests (engine stubbed)
"""
import pytesseract
import pytest

from camnote.errors import ExtractionFailed
from camnote.services import imaging, ocr_service


def stub_engine(monkeypatch, text, words=(), confs=()):
    calls = {}

    def image_to_string(img, lang=None, timeout=0, **kwargs):
        calls['lang'] = lang
        calls['timeout'] = timeout
        return text

    def image_to_data(img, lang=None, output_type=None, timeout=0, **kwargs):
        return {'text': list(words), 'conf': list(confs)}

    monkeypatch.setattr(ocr_service.pytesseract, 'image_to_string', image_to_string)
    monkeypatch.setattr(ocr_service.pytesseract, 'image_to_data', image_to_data)
    return calls


class TestCountWords:

    @pytest.mark.parametrize('text,expected', [
        ('', 0),
        ('   ', 0),
        ('Hello World', 2),
        ('Hello    World', 2),
        ('\n\nHello\tWorld\n', 2),
        ('one\ntwo  three\r\nfour', 4),
    ])
    def test_count_words(self, text, expected):
        assert ocr_service.count_words(text) == expected


class TestExtract:

    def test_hello_world(self, monkeypatch, png_bytes):
        calls = stub_engine(monkeypatch, '  Hello World\n\n', words=['', 'Hello', 'World'], confs=['-1', '91.4', '88'])
        result = ocr_service.extract(imaging.normalize(png_bytes), timeout=5)

        assert result.text == 'Hello World'
        assert result.word_count == 2
        assert result.confidence == 90
        assert calls == {'lang': 'eng', 'timeout': 5}
        assert result.to_dict() == {'text': 'Hello World', 'confidence': 90, 'wordCount': 2}

    def test_language_passed_through(self, monkeypatch, png_bytes):
        calls = stub_engine(monkeypatch, 'Bonjour', words=['Bonjour'], confs=[80])
        ocr_service.extract(imaging.normalize(png_bytes), language='fra')
        assert calls['lang'] == 'fra'

    def test_no_words_means_zero_confidence(self, monkeypatch, png_bytes):
        stub_engine(monkeypatch, '\n', words=[' '], confs=[-1])
        result = ocr_service.extract(imaging.normalize(png_bytes))
        assert result.text == ''
        assert result.word_count == 0
        assert result.confidence == 0

    @pytest.mark.parametrize('confs,expected', [
        (['90', '91'], 91),
        (['88', '89'], 89),
        (['10', '11'], 11),
    ])
    def test_confidence_rounds_half_up(self, monkeypatch, png_bytes, confs, expected):
        stub_engine(monkeypatch, 'Hello World', words=['Hello', 'World'], confs=confs)
        result = ocr_service.extract(imaging.normalize(png_bytes))
        assert result.confidence == expected

    def test_engine_error_becomes_extraction_failed(self, monkeypatch, png_bytes):
        def boom(*args, **kwargs):
            raise pytesseract.TesseractError(1, 'engine exploded')

        monkeypatch.setattr(ocr_service.pytesseract, 'image_to_string', boom)
        with pytest.raises(ExtractionFailed):
            ocr_service.extract(imaging.normalize(png_bytes))

    def test_timeout_becomes_extraction_failed(self, monkeypatch, png_bytes):
        def slow(*args, **kwargs):
            raise RuntimeError('Tesseract process timeout')

        monkeypatch.setattr(ocr_service.pytesseract, 'image_to_string', slow)
        with pytest.raises(ExtractionFailed):
            ocr_service.extract(imaging.normalize(png_bytes))


class TestConfigureTesseract:

    def test_explicit_command(self, monkeypatch):
        monkeypatch.setattr(ocr_service.pytesseract.pytesseract, 'tesseract_cmd', 'tesseract')
        ocr_service.configure_tesseract('/custom/tesseract')
        assert ocr_service.pytesseract.pytesseract.tesseract_cmd == '/custom/tesseract'
