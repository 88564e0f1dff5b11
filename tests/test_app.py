"""
Тесты для app.py (Flask приложение)
"""
import base64
import io
import zlib
from unittest import mock

import pytest
from app import app
from png_reader import decode_png
from png_writer import PNG_SIGNATURE, encode_png


@pytest.fixture
def client():
    """Фикстура для тестового клиента Flask"""
    app.config['TESTING'] = True
    max_dimension = app.config['MAX_IMAGE_DIMENSION']
    app.config['MAX_IMAGE_DIMENSION'] = 64
    with app.test_client() as client:
        yield client
    app.config['MAX_IMAGE_DIMENSION'] = max_dimension


class TestApp:
    """Тесты для Flask приложения"""

    def test_index_page(self, client):
        """Тест главной страницы"""
        response = client.get('/')
        assert response.status_code == 200
        assert b'<html' in response.data or b'<!DOCTYPE' in response.data
        assert b'checkerboard' in response.data

    def test_pattern_checkerboard(self, client):
        """Тест генерации шахматной доски"""
        response = client.get('/api/pattern?width=2&height=2')
        assert response.status_code == 200
        assert response.mimetype == 'image/png'
        assert response.data[:8] == PNG_SIGNATURE
        assert decode_png(response.data) == [
            [(255, 255, 255), (0, 0, 0)],
            [(0, 0, 0), (255, 255, 255)],
        ]
        assert 'checkerboard_2x2.png' in response.headers['Content-Disposition']

    def test_pattern_cell_size(self, client):
        """Тест параметра cell_size"""
        response = client.get('/api/pattern?width=4&height=1&cell_size=2')
        assert response.status_code == 200
        assert decode_png(response.data) == [
            [(255, 255, 255), (255, 255, 255), (0, 0, 0), (0, 0, 0)],
        ]

    def test_pattern_invalid_cell_size(self, client):
        """Тест неположительного cell_size"""
        response = client.get('/api/pattern?width=4&height=1&cell_size=0')
        assert response.status_code == 400

    def test_pattern_non_integer_cell_size(self, client):
        """Нецелый cell_size даёт 400, а не значение по умолчанию"""
        response = client.get('/api/pattern?width=4&height=1&cell_size=abc')
        assert response.status_code == 400
        assert 'cell_size' in response.get_json()['error']

    def test_pattern_non_integer_width(self, client):
        """Нецелая ширина сообщается отдельно от отсутствующей"""
        response = client.get('/api/pattern?width=abc&height=2')
        assert response.status_code == 400
        error = response.get_json()['error']
        assert 'целым числом' in error
        assert 'Не указан' not in error

    def test_pattern_missing_width_message(self, client):
        """Отсутствующая ширина"""
        response = client.get('/api/pattern?height=2')
        assert response.get_json()['error'] == 'Не указан параметр width'

    def test_pattern_gradient(self, client):
        """Тест генерации градиента"""
        response = client.get('/api/pattern?kind=gradient&width=3&height=2')
        assert response.status_code == 200
        image = decode_png(response.data)
        assert len(image) == 2
        assert len(image[0]) == 3

    def test_pattern_unknown_kind(self, client):
        """Тест неизвестного узора"""
        response = client.get('/api/pattern?kind=spiral&width=2&height=2')
        assert response.status_code == 400
        assert 'error' in response.get_json()

    def test_pattern_missing_width(self, client):
        """Тест без ширины"""
        response = client.get('/api/pattern?height=2')
        assert response.status_code == 400

    def test_pattern_zero_height(self, client):
        """Тест нулевой высоты"""
        response = client.get('/api/pattern?width=2&height=0')
        assert response.status_code == 400

    def test_pattern_too_large(self, client):
        """Тест превышения MAX_IMAGE_DIMENSION"""
        response = client.get('/api/pattern?width=65&height=2')
        assert response.status_code == 400

    def test_pattern_compression_failure(self, client):
        """Ошибка сжатия даёт 500"""
        with mock.patch('png_writer.zlib.compress', side_effect=zlib.error('boom')):
            response = client.get('/api/pattern?width=2&height=2')
        assert response.status_code == 500
        assert 'error' in response.get_json()

    def test_encode_endpoint(self, client):
        """Тест /api/encode"""
        pixels = [[[255, 0, 0], [0, 255, 0]], [[0, 0, 255], [255, 255, 255]]]
        response = client.post('/api/encode', json={'pixels': pixels})
        assert response.status_code == 200
        assert response.mimetype == 'image/png'
        assert decode_png(response.data) == [[tuple(p) for p in row] for row in pixels]

    def test_encode_endpoint_no_json(self, client):
        """Тест /api/encode без JSON"""
        response = client.post('/api/encode', data='not json')
        assert response.status_code == 400

    def test_encode_endpoint_ragged_rows(self, client):
        """Тест /api/encode со строками разной длины"""
        response = client.post('/api/encode', json={'pixels': [[[0, 0, 0], [0, 0, 0]], [[0, 0, 0]]]})
        assert response.status_code == 400
        assert 'error' in response.get_json()

    def test_encode_endpoint_empty(self, client):
        """Тест /api/encode с пустым изображением"""
        response = client.post('/api/encode', json={'pixels': []})
        assert response.status_code == 400

    def test_encode_endpoint_bad_pixel(self, client):
        """Тест /api/encode с компонентой вне диапазона"""
        response = client.post('/api/encode', json={'pixels': [[[300, 0, 0]]]})
        assert response.status_code == 400

    def test_encode_endpoint_too_wide(self, client):
        """/api/encode соблюдает MAX_IMAGE_DIMENSION по ширине"""
        response = client.post('/api/encode', json={'pixels': [[[0, 0, 0]] * 65]})
        assert response.status_code == 400
        assert '64' in response.get_json()['error']

    def test_preview_endpoint_too_tall(self, client):
        """/api/preview соблюдает MAX_IMAGE_DIMENSION по высоте"""
        response = client.post('/api/preview', json={'pixels': [[[0, 0, 0]]] * 65})
        assert response.status_code == 400

    def test_encode_endpoint_at_limit(self, client):
        """Изображение ровно MAX_IMAGE_DIMENSION кодируется"""
        response = client.post('/api/encode', json={'pixels': [[[0, 0, 0]] * 64]})
        assert response.status_code == 200

    def test_preview_endpoint(self, client):
        """Тест /api/preview"""
        response = client.post('/api/preview', json={'pixels': [[[255, 255, 255]]]})
        assert response.status_code == 200
        data = response.get_json()
        assert data['width'] == 1
        assert data['height'] == 1
        prefix = 'data:image/png;base64,'
        assert data['image'].startswith(prefix)
        assert base64.b64decode(data['image'][len(prefix):]) == encode_png([[(255, 255, 255)]])

    def test_preview_endpoint_no_pixels(self, client):
        """Тест /api/preview без pixels"""
        response = client.post('/api/preview', json={'image': []})
        assert response.status_code == 400

    def test_inspect_endpoint(self, client):
        """Тест /api/inspect"""
        png_bytes = encode_png([[(1, 2, 3)] * 3] * 2)
        response = client.post('/api/inspect',
                               data={'file': (io.BytesIO(png_bytes), 'test.png')})
        assert response.status_code == 200
        data = response.get_json()
        assert data['width'] == 3
        assert data['height'] == 2
        assert data['bit_depth'] == 8
        assert data['color_type'] == 2
        assert [c['type'] for c in data['chunks']] == ['IHDR', 'IDAT', 'IEND']
        assert data['chunks'][0]['length'] == 13
        assert data['chunks'][2]['crc'] == 'ae426082'

    def test_inspect_endpoint_no_file(self, client):
        """Тест /api/inspect без файла"""
        response = client.post('/api/inspect')
        assert response.status_code == 400

    def test_inspect_endpoint_not_png(self, client):
        """Тест /api/inspect с не-PNG файлом"""
        response = client.post('/api/inspect',
                               data={'file': (io.BytesIO(b'GIF89a'), 'test.gif')})
        assert response.status_code == 400
        assert 'error' in response.get_json()

    def test_404_page(self, client):
        """Тест несуществующей страницы"""
        response = client.get('/nonexistent')
        assert response.status_code == 404
