"""
Чтение PNG файлов без использования готовых библиотек.
Разбирает поток chunk'ов, проверяет CRC и восстанавливает пиксели
8-битных RGB изображений без чередования.
"""

import io
import struct
import zlib
from dataclasses import dataclass
from typing import BinaryIO, List, Optional

from png_writer import COLOR_TYPE_RGB, MAX_DIMENSION, PNG_SIGNATURE, Image, Pixel

# Байт на пиксель для RGB 8 бит
BYTES_PER_PIXEL = 3


class PNGFormatError(ValueError):
    """Некорректный или неподдерживаемый PNG"""


@dataclass(frozen=True)
class Chunk:
    """Разобранный chunk"""
    length: int
    type: bytes
    data: bytes
    crc: int


def paeth_predictor(a: int, b: int, c: int) -> int:
    """Предсказатель Паэта (фильтр 4)"""
    p = a + b - c
    pa = abs(p - a)
    pb = abs(p - b)
    pc = abs(p - c)
    if pa <= pb and pa <= pc:
        return a
    if pb <= pc:
        return b
    return c


def unfilter_scanlines(raw: bytes, width: int, height: int) -> bytes:
    """Снимает фильтры строк развёртки, возвращает плоские RGB байты"""
    stride = width * BYTES_PER_PIXEL
    expected = height * (1 + stride)
    if len(raw) != expected:
        raise PNGFormatError(f"Размер данных {len(raw)} байт, ожидалось {expected}")

    result = bytearray()
    prev = bytearray(stride)
    pos = 0

    for y in range(height):
        filter_type = raw[pos]
        line = bytearray(raw[pos + 1:pos + 1 + stride])
        pos += 1 + stride

        if filter_type == 0:
            pass
        elif filter_type == 1:  # Sub
            for i in range(BYTES_PER_PIXEL, stride):
                line[i] = (line[i] + line[i - BYTES_PER_PIXEL]) & 0xFF
        elif filter_type == 2:  # Up
            for i in range(stride):
                line[i] = (line[i] + prev[i]) & 0xFF
        elif filter_type == 3:  # Average
            for i in range(stride):
                left = line[i - BYTES_PER_PIXEL] if i >= BYTES_PER_PIXEL else 0
                line[i] = (line[i] + (left + prev[i]) // 2) & 0xFF
        elif filter_type == 4:  # Paeth
            for i in range(stride):
                left = line[i - BYTES_PER_PIXEL] if i >= BYTES_PER_PIXEL else 0
                up_left = prev[i - BYTES_PER_PIXEL] if i >= BYTES_PER_PIXEL else 0
                line[i] = (line[i] + paeth_predictor(left, prev[i], up_left)) & 0xFF
        else:
            raise PNGFormatError(f"Неизвестный тип фильтра {filter_type} в строке {y}")

        result.extend(line)
        prev = line

    return bytes(result)


class PNGReader:
    """Парсер для PNG файлов"""

    def __init__(self, data: bytes):
        self.data = data
        self.width = 0
        self.height = 0
        self.bit_depth = 0
        self.color_type = 0
        self.interlace = 0
        self.chunks: List[Chunk] = []

    def read_bytes(self, stream: BinaryIO, count: int) -> bytes:
        """Читает несколько байт из потока"""
        data = stream.read(count)
        if len(data) < count:
            raise EOFError("Неожиданный конец файла")
        return data

    def read_uint32_be(self, stream: BinaryIO) -> int:
        """Читает 32-битное беззнаковое число (big-endian)"""
        return struct.unpack('>I', self.read_bytes(stream, 4))[0]

    def read_chunk(self, stream: BinaryIO) -> Chunk:
        """Читает один chunk и проверяет его CRC"""
        length = self.read_uint32_be(stream)
        chunk_type = self.read_bytes(stream, 4)
        data = self.read_bytes(stream, length)
        crc = self.read_uint32_be(stream)

        expected = zlib.crc32(data, zlib.crc32(chunk_type)) & 0xFFFFFFFF
        if crc != expected:
            raise PNGFormatError(
                f"Неверный CRC chunk {chunk_type!r}: {crc:#010x} != {expected:#010x}"
            )
        return Chunk(length, chunk_type, data, crc)

    def parse_header(self, chunk: Chunk):
        """Разбирает IHDR"""
        if chunk.length != 13:
            raise PNGFormatError(f"Неверная длина IHDR: {chunk.length}")
        (self.width, self.height, self.bit_depth, self.color_type,
         compression, filter_method, self.interlace) = struct.unpack('>IIBBBBB', chunk.data)
        if not 0 < self.width <= MAX_DIMENSION or not 0 < self.height <= MAX_DIMENSION:
            raise PNGFormatError(f"Недопустимые размеры в IHDR: {self.width}x{self.height}")
        if compression != 0 or filter_method != 0:
            raise PNGFormatError("Неподдерживаемый метод сжатия или фильтрации")

    def parse(self) -> List[Chunk]:
        """Парсит PNG файл и возвращает список chunk'ов"""
        stream = io.BytesIO(self.data)
        try:
            signature = self.read_bytes(stream, len(PNG_SIGNATURE))
        except EOFError as e:
            raise PNGFormatError("Файл слишком короткий для PNG") from e
        if signature != PNG_SIGNATURE:
            raise PNGFormatError(f"Неверная сигнатура PNG: {signature!r}")

        chunks = []
        ihdr: Optional[Chunk] = None
        idat_closed = False
        while True:
            try:
                chunk = self.read_chunk(stream)
            except EOFError as e:
                raise PNGFormatError("Файл обрывается до IEND") from e

            if ihdr is None:
                if chunk.type != b'IHDR':
                    raise PNGFormatError("Первым chunk должен быть IHDR")
                ihdr = chunk
                self.parse_header(chunk)
            elif chunk.type == b'IHDR':
                raise PNGFormatError("Повторный IHDR")
            elif chunk.type == b'IDAT':
                # IDAT chunk'и должны идти подряд
                if idat_closed:
                    raise PNGFormatError("IDAT chunk'и идут не подряд")
            elif chunks[-1].type == b'IDAT':
                idat_closed = True

            chunks.append(chunk)
            if chunk.type == b'IEND':
                break

        if not any(chunk.type == b'IDAT' for chunk in chunks):
            raise PNGFormatError("PNG файл не содержит данных изображения")

        self.chunks = chunks
        return chunks

    def decode(self) -> Image:
        """Восстанавливает пиксели изображения"""
        if not self.chunks:
            self.parse()

        if self.bit_depth != 8 or self.color_type != COLOR_TYPE_RGB:
            raise PNGFormatError(
                f"Поддерживается только RGB 8 бит, получено: тип {self.color_type}, "
                f"глубина {self.bit_depth}"
            )
        if self.interlace != 0:
            raise PNGFormatError("PNG с чередованием не поддерживается")

        compressed = b''.join(chunk.data for chunk in self.chunks if chunk.type == b'IDAT')
        try:
            raw = zlib.decompress(compressed)
        except zlib.error as e:
            raise PNGFormatError(f"Ошибка распаковки IDAT: {e}") from e

        pixels = unfilter_scanlines(raw, self.width, self.height)
        stride = self.width * BYTES_PER_PIXEL

        image = []
        for y in range(self.height):
            offset = y * stride
            image.append([
                Pixel(pixels[i], pixels[i + 1], pixels[i + 2])
                for i in range(offset, offset + stride, BYTES_PER_PIXEL)
            ])
        return image


def decode_png(data: bytes) -> Image:
    """Декодирует байты PNG в изображение"""
    return PNGReader(data).decode()


def read_png(file_path: str) -> Image:
    """Читает и декодирует PNG файл"""
    with open(file_path, 'rb') as f:
        return decode_png(f.read())
