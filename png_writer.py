"""
Запись PNG файлов без использования готовых библиотек.
Реализует сохранение RGB изображения в PNG формат вручную:
сигнатура, IHDR, один IDAT и IEND.
"""

import io
import logging
import struct
import zlib
from typing import BinaryIO, List, NamedTuple, Sequence, Tuple

logger = logging.getLogger(__name__)

PNG_SIGNATURE = b'\x89PNG\r\n\x1a\n'

# Максимальная ширина/высота по стандарту PNG
MAX_DIMENSION = 2 ** 31 - 1

BIT_DEPTH = 8
COLOR_TYPE_RGB = 2
COMPRESSION_METHOD = 0
FILTER_METHOD = 0
INTERLACE_METHOD = 0
FILTER_NONE = 0

DEFAULT_COMPRESSION_LEVEL = 6


class Pixel(NamedTuple):
    """Пиксель: три 8-битные компоненты"""
    red: int
    green: int
    blue: int


Image = List[List[Pixel]]


class InvalidImageError(ValueError):
    """Изображение не удовлетворяет требованиям кодировщика"""


class CompressionError(RuntimeError):
    """Ошибка сжатия данных zlib"""


def validate_image(image: Sequence[Sequence[Tuple[int, int, int]]]) -> Tuple[int, int]:
    """Проверяет размеры изображения и возвращает (ширина, высота)"""
    height = len(image)
    if height == 0:
        raise InvalidImageError("Изображение не содержит строк")

    width = len(image[0])
    if width == 0:
        raise InvalidImageError("Ширина изображения равна нулю")

    if width > MAX_DIMENSION or height > MAX_DIMENSION:
        raise InvalidImageError(f"Размеры {width}x{height} превышают предел PNG")

    for y, row in enumerate(image):
        if len(row) != width:
            raise InvalidImageError(
                f"Строка {y} имеет длину {len(row)}, ожидалось {width}"
            )

    return width, height


def encode_scanlines(image: Sequence[Sequence[Tuple[int, int, int]]]) -> bytes:
    """Разворачивает изображение в строки развёртки с фильтром None (0)"""
    image_data = bytearray()

    for y, row in enumerate(image):
        image_data.append(FILTER_NONE)
        for x, pixel in enumerate(row):
            try:
                r, g, b = pixel
                image_data.extend((r, g, b))
            except (TypeError, ValueError) as e:
                raise InvalidImageError(
                    f"Некорректный пиксель ({y}, {x}): {pixel!r}"
                ) from e

    return bytes(image_data)


def compress(data: bytes, level: int = DEFAULT_COMPRESSION_LEVEL) -> bytes:
    """Сжимает данные в zlib-контейнер (deflate + Adler-32)"""
    if not -1 <= level <= 9:
        raise ValueError(f"Недопустимый уровень сжатия: {level}")
    try:
        return zlib.compress(data, level)
    except zlib.error as e:
        raise CompressionError(f"Ошибка сжатия: {e}") from e


def create_chunk(chunk_type: bytes, chunk_data: bytes) -> bytes:
    """Создаёт PNG chunk с контрольной суммой CRC32"""
    if len(chunk_type) != 4 or not chunk_type.isalpha():
        raise ValueError(f"Тип chunk должен состоять из 4 ASCII букв: {chunk_type!r}")

    chunk_length = struct.pack('>I', len(chunk_data))
    # CRC считается по типу и данным как по одному потоку, длина не входит
    crc = zlib.crc32(chunk_data, zlib.crc32(chunk_type)) & 0xFFFFFFFF

    return chunk_length + chunk_type + chunk_data + struct.pack('>I', crc)


def write_chunk(sink: BinaryIO, chunk_type: bytes, chunk_data: bytes) -> None:
    """Дописывает один chunk в поток вывода"""
    sink.write(create_chunk(chunk_type, chunk_data))


class PNGWriter:
    """Класс для записи PNG файлов"""

    PNG_SIGNATURE = PNG_SIGNATURE

    def __init__(self, rgb_data: Sequence[Sequence[Tuple[int, int, int]]],
                 compression_level: int = DEFAULT_COMPRESSION_LEVEL):
        self.width, self.height = validate_image(rgb_data)
        self.rgb_data = rgb_data
        self.compression_level = compression_level

    def ihdr_data(self) -> bytes:
        """Данные IHDR chunk (13 байт)"""
        return struct.pack(
            '>IIBBBBB',
            self.width,
            self.height,
            BIT_DEPTH,
            COLOR_TYPE_RGB,
            COMPRESSION_METHOD,
            FILTER_METHOD,
            INTERLACE_METHOD,
        )

    def create_ihdr_chunk(self) -> bytes:
        """Создаёт IHDR chunk (заголовок изображения)"""
        return create_chunk(b'IHDR', self.ihdr_data())

    def prepare_image_data(self) -> bytes:
        """Подготавливает несжатые строки развёртки"""
        return encode_scanlines(self.rgb_data)

    def encode(self) -> bytes:
        """Собирает PNG файл целиком в памяти"""
        # Сжатие до записи чего-либо: ошибка не должна оставить половину файла
        compressed = compress(self.prepare_image_data(), self.compression_level)

        buffer = io.BytesIO()
        buffer.write(self.PNG_SIGNATURE)
        write_chunk(buffer, b'IHDR', self.ihdr_data())
        write_chunk(buffer, b'IDAT', compressed)
        write_chunk(buffer, b'IEND', b'')
        return buffer.getvalue()

    def write(self, file_path: str):
        """Записывает PNG файл"""
        png_bytes = self.encode()
        with open(file_path, 'wb') as f:
            f.write(png_bytes)
        logger.debug("Записан PNG %dx%d (%d байт) в %s",
                     self.width, self.height, len(png_bytes), file_path)


def encode_png(image: Sequence[Sequence[Tuple[int, int, int]]],
               compression_level: int = DEFAULT_COMPRESSION_LEVEL) -> bytes:
    """Кодирует изображение в байты PNG"""
    return PNGWriter(image, compression_level).encode()


def save(image: Sequence[Sequence[Tuple[int, int, int]]], path: str,
         compression_level: int = DEFAULT_COMPRESSION_LEVEL) -> None:
    """Кодирует изображение и сохраняет его в файл"""
    PNGWriter(image, compression_level).write(path)
