from collections import deque
from dataclasses import dataclass

SPLIT = -1
MAX_GRAY = 255


class QuadtreeError(Exception):
    pass

class QuadtreeFormatError(QuadtreeError, ValueError):
    """Raised when serialized or raw data doesn't follow the expected format."""
    pass

class QuadtreeTruncationError(QuadtreeFormatError):
    """Raised when a node sequence ends before the tree is complete."""
    pass

class QuadtreeStateError(QuadtreeError, RuntimeError):
    pass

class QuadtreePreconditionError(QuadtreeError, ValueError):
    """Raised when image dimensions are not a square of a power of 2."""
    pass


@dataclass(frozen=True)
class Leaf:
    value: int

    def is_leaf(self) -> bool:
        return True


@dataclass(frozen=True)
class Split:
    upper_left: "QuadNode"
    upper_right: "QuadNode"
    lower_left: "QuadNode"
    lower_right: "QuadNode"

    @property
    def value(self) -> int:
        return SPLIT

    @property
    def children(self) -> tuple["QuadNode", "QuadNode", "QuadNode", "QuadNode"]:
        # order matters, both serialization and decoding rely on it
        return (self.upper_left, self.upper_right, self.lower_left, self.lower_right)

    def is_leaf(self) -> bool:
        return False


QuadNode = Leaf | Split

@dataclass
class QuadtreeImage:
    dimension: int
    root: QuadNode


def count_nodes(root: QuadNode) -> int:
    queue = deque[QuadNode]([root])
    count = 0
    while queue:
        cur = queue.popleft()
        count += 1
        if not cur.is_leaf():
            queue.extend(cur.children)
    return count
