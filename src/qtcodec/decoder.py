from collections import deque

import numpy as np

from qtcodec.common import QuadNode, QuadtreeFormatError
from qtcodec.utils import is_power_of_two


class QuadtreeDecoder:
    def decode(self, root: QuadNode, dimension: int) -> np.ndarray:
        if not is_power_of_two(dimension):
            raise QuadtreeFormatError(f'Image dimension {dimension} is not a power of 2')
        img = np.zeros((dimension, dimension), dtype=np.uint8)
        self._decode_pow2_square(img, 0, 0, dimension, root)
        return img

    def _decode_pow2_square(self, img: np.ndarray, i: int, j: int, side: int, root: QuadNode):
        queue = deque([(root, 0, i, j)])
        side_exponent = side.bit_length() - 1

        while queue:
            cur, depth, range_i, range_j = queue.popleft()

            size = 2**(side_exponent - depth)
            if cur.is_leaf():
                img[range_i:range_i + size, range_j:range_j + size] = cur.value
            else:
                if size == 1:
                    raise QuadtreeFormatError(
                        f'Invalid tree: split node at depth {depth} exceeds image dimension {side}')
                newsize = size // 2
                ul, ur, ll, lr = cur.children
                queue.append((ul, depth + 1, range_i, range_j))
                queue.append((ur, depth + 1, range_i, range_j + newsize))
                queue.append((ll, depth + 1, range_i + newsize, range_j))
                queue.append((lr, depth + 1, range_i + newsize, range_j + newsize))
