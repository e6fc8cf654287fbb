import numpy as np
from numba import njit

from qtcodec.common import Leaf, QuadNode, Split
from qtcodec.utils import validate_raster


class QuadtreeEncoder:
    """Lossless quadtree encoder.

    Square is stored as a single leaf if all of its pixels have the same value, otherwise it's divided
    into 4 subsquares (upper-left, upper-right, lower-left, lower-right) that are encoded the same way.
    """

    def encode(self, img: np.ndarray) -> QuadNode:
        img = validate_raster(img)
        return self._quadtree(img, 0, 0, img.shape[0])

    def _quadtree(self, img: np.ndarray, start_i: int, start_j: int, side: int) -> QuadNode:
        """Performs quadtree over img[start_i:start_i+side, start_j:start_j+side]. Side must be power of 2."""
        if side == 1 or _is_uniform(img, start_i, start_j, side):
            return Leaf(int(img[start_i, start_j]))
        return self._divide_into_4_subsquares(img, start_i, start_j, side // 2)

    def _divide_into_4_subsquares(self, img: np.ndarray, start_i: int, start_j: int, new_side: int) -> QuadNode:
        c1 = self._quadtree(img, start_i, start_j, new_side)
        c2 = self._quadtree(img, start_i, start_j + new_side, new_side)
        c3 = self._quadtree(img, start_i + new_side, start_j, new_side)
        c4 = self._quadtree(img, start_i + new_side, start_j + new_side, new_side)
        return Split(c1, c2, c3, c4)

@njit
def _is_uniform(img: np.ndarray, start_i: int, start_j: int, side: int) -> bool:
    val = img[start_i, start_j]
    for i in range(start_i, start_i + side):
        for j in range(start_j, start_j + side):
            if img[i, j] != val:
                return False
    return True
