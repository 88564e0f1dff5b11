"""
Генераторы тестовых изображений для PNG кодировщика.
"""

from typing import Callable, Dict

from png_writer import Image, InvalidImageError, Pixel

WHITE = Pixel(255, 255, 255)
BLACK = Pixel(0, 0, 0)


def _check_size(width: int, height: int):
    if width <= 0 or height <= 0:
        raise InvalidImageError(f"Размеры должны быть положительными: {width}x{height}")


def generate_pattern(width: int, height: int, cell_size: int = 1) -> Image:
    """Шахматная доска: клетка (row + col) чётная - белая, иначе чёрная"""
    _check_size(width, height)
    if cell_size <= 0:
        raise ValueError(f"Размер клетки должен быть положительным: {cell_size}")

    return [
        [WHITE if (y // cell_size + x // cell_size) % 2 == 0 else BLACK
         for x in range(width)]
        for y in range(height)
    ]


def generate_gradient(width: int, height: int) -> Image:
    """Градиент: красный растёт слева направо, зелёный сверху вниз"""
    _check_size(width, height)

    image = []
    for y in range(height):
        g = 255 * y // max(1, height - 1)
        row = []
        for x in range(width):
            r = 255 * x // max(1, width - 1)
            row.append(Pixel(r, g, 128))
        image.append(row)
    return image


PATTERNS: Dict[str, Callable[[int, int], Image]] = {
    'checkerboard': generate_pattern,
    'gradient': generate_gradient,
}
