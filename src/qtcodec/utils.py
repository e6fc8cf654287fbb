import math
from typing import TextIO

import numpy as np

from qtcodec.common import (MAX_GRAY, QuadtreeFormatError,
                            QuadtreePreconditionError)


def is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0

def dimension_from_size(size: int) -> int:
    """Returns side of the square image with given number of pixels.

    Raises:
        QuadtreePreconditionError: if size is not a square of a power of 2
    """
    if size <= 0:
        raise QuadtreePreconditionError(f'Image size must be positive, got {size}')
    dimension = math.isqrt(size)
    if dimension * dimension != size:
        raise QuadtreePreconditionError(f'Image size {size} is not a perfect square')
    if not is_power_of_two(dimension):
        raise QuadtreePreconditionError(f'Image dimension {dimension} is not a power of 2')
    return dimension

def read_int_lines(input: str | TextIO) -> list[int]:
    """Reads a text file holding one integer per line.

    Surrounding whitespace of each line is ignored, as are blank lines at the end of the file.

    Args:
        input (str | TextIO): path of the file or an open text stream, stream is not closed

    Returns:
        list[int]: values in file order
    """
    file = input
    should_close = False
    try:
        if isinstance(input, str):
            file = open(input, 'r')
            should_close = True
        lines = [line.strip() for line in file]
    finally:
        if should_close:
            file.close()

    while lines and not lines[-1]:
        lines.pop()

    values = []
    for line_no, line in enumerate(lines, start=1):
        try:
            values.append(int(line))
        except ValueError:
            raise QuadtreeFormatError(f'Invalid file format: line {line_no} is not an integer: {line!r}') from None
    return values

def validate_raster(raster: np.ndarray) -> np.ndarray:
    """Checks that raster is a square grayscale image with power of 2 side.

    Returns:
        np.ndarray: copy of raster with dtype uint8
    """
    raster = np.asarray(raster)
    if raster.ndim != 2 or raster.shape[0] != raster.shape[1]:
        raise QuadtreePreconditionError(f'Raster must be a square 2d array, got shape {raster.shape}')
    if not is_power_of_two(raster.shape[0]):
        raise QuadtreePreconditionError(f'Raster dimension {raster.shape[0]} is not a power of 2')
    if not np.issubdtype(raster.dtype, np.integer):
        raise QuadtreeFormatError(f'Raster must hold integers, got dtype {raster.dtype}')
    if raster.min() < 0 or raster.max() > MAX_GRAY:
        raise QuadtreeFormatError(f'Raster values must be in range [0, {MAX_GRAY}]')
    return raster.astype(np.uint8)

def load_raw_image(input: str | TextIO) -> np.ndarray:
    """Loads raw ascii image, one grayscale value per line in row-major order."""
    values = read_int_lines(input)
    dimension = dimension_from_size(len(values))
    for line_no, value in enumerate(values, start=1):
        if not 0 <= value <= MAX_GRAY:
            raise QuadtreeFormatError(f'Invalid file format: value {value} on line {line_no} is not a grayscale value')
    return np.array(values, dtype=np.uint8).reshape((dimension, dimension))
