"""
Flask веб-приложение для генерации и проверки PNG файлов
"""

from flask import Flask, request, jsonify, send_file, render_template
import base64
import io
from pattern import PATTERNS
from png_reader import PNGReader, PNGFormatError
from png_writer import InvalidImageError, encode_png

app = Flask(__name__)
app.config['MAX_CONTENT_LENGTH'] = 16 * 1024 * 1024  # 16MB максимум
app.config['MAX_IMAGE_DIMENSION'] = 4096
app.config['COMPRESSION_LEVEL'] = 6


def _read_positive_int(name: str, default=None, maximum=None):
    """Читает положительное целое из параметров запроса, возвращает (значение, ошибка)"""
    raw = request.args.get(name, type=str)
    if raw is None:
        if default is not None:
            return default, None
        return None, f'Не указан параметр {name}'
    try:
        value = int(raw)
    except ValueError:
        return None, f'Параметр {name} должен быть целым числом: {raw!r}'
    if value <= 0 or (maximum is not None and value > maximum):
        if maximum is None:
            return None, f'Параметр {name} должен быть положительным'
        return None, f'Параметр {name} должен быть от 1 до {maximum}'
    return value, None


def _read_dimension(name: str):
    """Читает размер из параметров запроса, возвращает (значение, ошибка)"""
    return _read_positive_int(name, maximum=app.config['MAX_IMAGE_DIMENSION'])


def _read_pixels():
    """Достаёт пиксели из JSON тела запроса, возвращает (изображение, ошибка)"""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict) or 'pixels' not in payload:
        return None, 'Ожидался JSON с полем pixels'
    pixels = payload['pixels']
    if not isinstance(pixels, list) or not all(isinstance(row, list) for row in pixels):
        return None, 'Ожидался JSON с полем pixels'

    limit = app.config['MAX_IMAGE_DIMENSION']
    if len(pixels) > limit or any(len(row) > limit for row in pixels):
        return None, f'Ширина и высота изображения должны быть не больше {limit}'

    return [[tuple(p) if isinstance(p, list) else p for p in row] for row in pixels], None


@app.route('/')
def index():
    """Главная страница"""
    return render_template('index.html', patterns=sorted(PATTERNS))


@app.route('/api/pattern', methods=['GET'])
def pattern_png():
    """Генерирует PNG с тестовым узором"""
    kind = request.args.get('kind', 'checkerboard')
    generator = PATTERNS.get(kind)
    if generator is None:
        return jsonify({'error': f'Неизвестный узор: {kind}. Доступно: {", ".join(sorted(PATTERNS))}'}), 400

    width, error = _read_dimension('width')
    if error:
        return jsonify({'error': error}), 400
    height, error = _read_dimension('height')
    if error:
        return jsonify({'error': error}), 400

    try:
        if kind == 'checkerboard':
            cell_size, error = _read_positive_int('cell_size', default=1)
            if error:
                return jsonify({'error': error}), 400
            image = generator(width, height, cell_size=cell_size)
        else:
            image = generator(width, height)

        png_bytes = encode_png(image, app.config['COMPRESSION_LEVEL'])
    except Exception as e:
        app.logger.exception("Ошибка генерации узора %s", kind)
        return jsonify({'error': f'Ошибка обработки: {str(e)}'}), 500

    return send_file(
        io.BytesIO(png_bytes),
        mimetype='image/png',
        as_attachment=True,
        download_name=f'{kind}_{width}x{height}.png'
    )


@app.route('/api/encode', methods=['POST'])
def encode_pixels():
    """Кодирует переданные пиксели в PNG"""
    image, error = _read_pixels()
    if error:
        return jsonify({'error': error}), 400

    try:
        png_bytes = encode_png(image, app.config['COMPRESSION_LEVEL'])
    except InvalidImageError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        app.logger.exception("Ошибка кодирования PNG")
        return jsonify({'error': f'Ошибка обработки: {str(e)}'}), 500

    return send_file(
        io.BytesIO(png_bytes),
        mimetype='image/png',
        as_attachment=True,
        download_name='image.png'
    )


@app.route('/api/preview', methods=['POST'])
def preview_pixels():
    """Возвращает превью изображения в base64"""
    image, error = _read_pixels()
    if error:
        return jsonify({'error': error}), 400

    try:
        png_bytes = encode_png(image, app.config['COMPRESSION_LEVEL'])
    except InvalidImageError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        app.logger.exception("Ошибка превью PNG")
        return jsonify({'error': f'Ошибка обработки: {str(e)}'}), 500

    image_base64 = base64.b64encode(png_bytes).decode('utf-8')
    return jsonify({
        'image': f'data:image/png;base64,{image_base64}',
        'width': len(image[0]),
        'height': len(image)
    })


@app.route('/api/inspect', methods=['POST'])
def inspect_png():
    """Разбирает загруженный PNG и возвращает список chunk'ов"""
    if 'file' not in request.files:
        return jsonify({'error': 'Файл не загружен'}), 400

    file = request.files['file']
    if file.filename == '':
        return jsonify({'error': 'Файл не выбран'}), 400

    reader = PNGReader(file.read())
    try:
        chunks = reader.parse()
    except PNGFormatError as e:
        return jsonify({'error': f'Ошибка парсинга: {str(e)}'}), 400

    return jsonify({
        'width': reader.width,
        'height': reader.height,
        'bit_depth': reader.bit_depth,
        'color_type': reader.color_type,
        'interlace': reader.interlace,
        'chunks': [
            {
                'type': chunk.type.decode('ascii', errors='replace'),
                'length': chunk.length,
                'crc': f'{chunk.crc:08x}'
            }
            for chunk in chunks
        ]
    })


if __name__ == '__main__':
    # Для Docker используем 0.0.0.0, чтобы принимать подключения извне
    app.run(debug=True, host='0.0.0.0', port=5000)
