from typing import Sequence, TextIO

import numpy as np

from qtcodec.common import (QuadNode, QuadtreeImage, QuadtreeStateError,
                            count_nodes)
from qtcodec.decoder import QuadtreeDecoder
from qtcodec.encoder import QuadtreeEncoder
from qtcodec.serialization import (QuadtreeDeserializer, QuadtreeSerializer,
                                   serialize_node)
from qtcodec.utils import load_raw_image


class QuadTree:
    """Compresses square grayscale images into quadtrees and uncompresses them back.

    Tree starts empty. Every successful compress/uncompress replaces the whole state (root, raster and sizes),
    failed calls leave previous state untouched.
    """

    def __init__(self, log_stats=False) -> None:
        self.log_stats = log_stats
        self.encoder = QuadtreeEncoder()
        self.decoder = QuadtreeDecoder()

        self._root: QuadNode | None = None
        self._dimension = 0
        self._raster: np.ndarray | None = None
        self._raw_size = 0
        self._compressed_size = 0

    @property
    def root(self) -> QuadNode | None:
        return self._root

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def raster(self) -> np.ndarray | None:
        return self._raster

    @property
    def raw_size(self) -> int:
        return self._raw_size

    @property
    def compressed_size(self) -> int:
        return self._compressed_size

    @property
    def compression_ratio(self) -> float:
        """Percentage of values saved by compression, negative if compressed form is bigger."""
        if self._raw_size == 0:
            return 0.
        return 100. * (1. - self._compressed_size / self._raw_size)

    def is_empty(self) -> bool:
        return self._root is None

    def compress(self, input: str | TextIO):
        """Compresses raw ascii image, one grayscale value (0-255) per line, 2^n x 2^n lines."""
        self.compress_raster(load_raw_image(input))

    def compress_raster(self, raster: np.ndarray):
        root = self.encoder.encode(raster)
        raster = np.array(raster, dtype=np.uint8)
        self._set_state(root, raster)

    def uncompress(self, input: str | TextIO):
        """Uncompresses file written by write(). Once done, raster holds the decoded image."""
        quadtree_img = QuadtreeDeserializer().deserialize(input)
        self._uncompress_image(quadtree_img)

    def uncompress_values(self, raw_size: int, values: Sequence[int]):
        quadtree_img = QuadtreeDeserializer().deserialize_values(raw_size, values)
        self._uncompress_image(quadtree_img)

    def _uncompress_image(self, quadtree_img: QuadtreeImage):
        raster = self.decoder.decode(quadtree_img.root, quadtree_img.dimension)
        self._set_state(quadtree_img.root, raster)

    def _set_state(self, root: QuadNode, raster: np.ndarray):
        self._root = root
        self._raster = raster
        self._dimension = raster.shape[0]
        self._raw_size = self._dimension * self._dimension
        self._compressed_size = count_nodes(root)
        if self.log_stats:
            print(f'Raw image size: {self._raw_size}; Compressed image size: {self._compressed_size}; '
                  f'Compression: {self.compression_ratio:.2f}%')

    def serialize(self) -> list[int]:
        self._require_root()
        return serialize_node(self._root)

    def write(self, output: str | TextIO):
        self._require_root()
        QuadtreeSerializer(QuadtreeImage(self._dimension, self._root)).serialize(output)

    def _require_root(self):
        if self._root is None:
            raise QuadtreeStateError('Quadtree is empty, compress or uncompress an image first')

    def __str__(self) -> str:
        values = serialize_node(self._root) if self._root is not None else []
        return 'QTree: ' + ' '.join(str(v) for v in values)
