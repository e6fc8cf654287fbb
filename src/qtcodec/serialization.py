from typing import Sequence, TextIO

from qtcodec.common import (MAX_GRAY, SPLIT, Leaf, QuadNode,
                            QuadtreeFormatError, QuadtreeImage,
                            QuadtreeTruncationError, Split)
from qtcodec.utils import dimension_from_size, read_int_lines


def serialize_node(root: QuadNode) -> list[int]:
    """Flattens tree in preorder: node value first, then upper-left, upper-right, lower-left and
    lower-right subtrees. Every node contributes exactly one value."""
    values = []
    stack = [root]
    while stack:
        cur = stack.pop()
        values.append(cur.value)
        if not cur.is_leaf():
            stack.extend(reversed(cur.children))
    return values

def parse_node(values: Sequence[int]) -> QuadNode:
    """Inverse of serialize_node, the whole sequence must be consumed.

    Raises:
        QuadtreeTruncationError: if values end before the tree is complete
        QuadtreeFormatError: if a value is out of range or values remain after the tree is complete
    """
    root, pos = _read_node(values, 0)
    if pos != len(values):
        raise QuadtreeFormatError(
            f'Invalid node sequence: tree is complete after {pos} values, but {len(values) - pos} remain')
    return root

def _read_node(values: Sequence[int], pos: int) -> tuple[QuadNode, int]:
    # children of splits that are still being read, innermost last
    pending: list[list[QuadNode]] = []
    while True:
        if pos >= len(values):
            raise QuadtreeTruncationError(
                f'Invalid node sequence: ended after {pos} values with {len(pending)} incomplete split node(s)')
        value = values[pos]
        pos += 1
        if value == SPLIT:
            pending.append([])
            continue
        if not 0 <= value <= MAX_GRAY:
            raise QuadtreeFormatError(f'Invalid node sequence: value {value} at position {pos - 1} is not a grayscale value')

        node = Leaf(int(value))
        while pending:
            pending[-1].append(node)
            if len(pending[-1]) < 4:
                break
            node = Split(*pending.pop())
        else:
            return node, pos


class QuadtreeSerializer:
    """Writes compressed image as text: first line holds raw image size (number of pixels),
    following lines hold preorder node values, one per line."""

    def __init__(self, quadtree_img: QuadtreeImage) -> None:
        self.img = quadtree_img
        self.file: TextIO = None

    def serialize(self, output: str | TextIO):
        # rendered up front, so failures can't leave partially written file behind
        text = self.render()
        self.file = output
        should_close = False
        try:
            if isinstance(output, str):
                self.file = open(output, 'w')
                should_close = True
            self.file.write(text)
        finally:
            if should_close:
                self.file.close()

    def render(self) -> str:
        lines = [str(self.img.dimension * self.img.dimension)]
        lines.extend(str(v) for v in serialize_node(self.img.root))
        return '\n'.join(lines) + '\n'


class QuadtreeDeserializer:
    def deserialize(self, input: str | TextIO) -> QuadtreeImage:
        values = read_int_lines(input)
        if not values:
            raise QuadtreeTruncationError('Invalid file format: header is missing, empty file?')
        return self.deserialize_values(values[0], values[1:])

    def deserialize_values(self, raw_size: int, values: Sequence[int]) -> QuadtreeImage:
        dimension = dimension_from_size(raw_size)
        return QuadtreeImage(dimension, parse_node(values))
