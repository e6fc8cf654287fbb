"""
Tests for the QuadTree compress/uncompress facade.
"""

import io

import numpy as np
import pytest

from qtcodec.codec import QuadTree
from qtcodec.common import (Leaf, QuadtreeFormatError, QuadtreeStateError,
                            QuadtreeTruncationError, Split)


def write_raw(path, img: np.ndarray):
    path.write_text("".join(f"{v}\n" for v in img.reshape(-1)))


class TestRoundTrip:

    @pytest.fixture(params=[1, 2, 4, 16, 64])
    def blocky_image(self, request):
        """Random image made of uniform blocks, so the tree has leaves at several depths."""
        dimension = request.param
        rng = np.random.default_rng(dimension)
        block = max(dimension // 8, 1)
        coarse = rng.integers(0, 256, (dimension // block, dimension // block))
        img = np.kron(coarse, np.ones((block, block), dtype=np.int64)).astype(np.uint8)
        # sprinkle some pixel level detail
        mask = rng.random(img.shape) < 0.05
        img[mask] = rng.integers(0, 256, mask.sum())
        return img

    def test_raster_round_trip(self, blocky_image):
        tree = QuadTree()
        tree.compress_raster(blocky_image)

        restored = QuadTree()
        restored.uncompress_values(tree.raw_size, tree.serialize())

        np.testing.assert_array_equal(restored.raster, blocky_image)
        assert restored.root == tree.root

    def test_file_round_trip(self, tmp_path, blocky_image):
        raw_path = tmp_path / "img.raw"
        compressed_path = tmp_path / "img.rit"
        write_raw(raw_path, blocky_image)

        tree = QuadTree()
        tree.compress(str(raw_path))
        tree.write(str(compressed_path))

        restored = QuadTree()
        restored.uncompress(str(compressed_path))

        np.testing.assert_array_equal(restored.raster, blocky_image)
        assert restored.dimension == blocky_image.shape[0]
        assert restored.raw_size == blocky_image.size
        assert restored.compressed_size == tree.compressed_size
        lines = compressed_path.read_text().splitlines()
        assert len(lines) == 1 + tree.compressed_size
        assert int(lines[0]) == blocky_image.size

    def test_compressed_size_matches_serialization(self, blocky_image):
        tree = QuadTree()
        tree.compress_raster(blocky_image)

        assert tree.compressed_size == len(tree.serialize())


class TestQuadTree:

    @pytest.fixture
    def example_tree(self):
        tree = QuadTree()
        tree.compress_raster(np.array([[5, 5], [5, 7]]))
        return tree

    def test_starts_empty(self):
        tree = QuadTree()

        assert tree.is_empty()
        assert tree.root is None
        assert tree.raster is None
        assert tree.dimension == 0
        assert tree.raw_size == 0
        assert tree.compressed_size == 0
        assert str(tree) == "QTree: "

    def test_example(self, example_tree):
        assert example_tree.root == Split(Leaf(5), Leaf(5), Leaf(5), Leaf(7))
        assert example_tree.serialize() == [-1, 5, 5, 5, 7]
        assert example_tree.dimension == 2
        assert example_tree.raw_size == 4
        assert example_tree.compressed_size == 5
        assert str(example_tree) == "QTree: -1 5 5 5 7"

    def test_example_written_file(self, example_tree):
        out = io.StringIO()
        example_tree.write(out)

        assert out.getvalue() == "4\n-1\n5\n5\n5\n7\n"

    def test_example_uncompress(self):
        tree = QuadTree()
        tree.uncompress(io.StringIO("4\n-1\n5\n5\n5\n7\n"))

        np.testing.assert_array_equal(tree.raster, [[5, 5], [5, 7]])
        assert tree.compressed_size == 5
        assert tree.raw_size == 4

    def test_compress_raw_file(self, tmp_path):
        raw_path = tmp_path / "example.raw"
        raw_path.write_text("5\n5\n5\n7\n")

        tree = QuadTree()
        tree.compress(str(raw_path))

        assert tree.serialize() == [-1, 5, 5, 5, 7]
        np.testing.assert_array_equal(tree.raster, [[5, 5], [5, 7]])

    def test_uniform_image(self):
        tree = QuadTree()
        tree.compress_raster(np.full((32, 32), 128, dtype=np.uint8))

        assert tree.compressed_size == 1
        assert tree.root == Leaf(128)
        assert tree.compression_ratio == pytest.approx(100. * (1. - 1. / 1024))

    def test_checkerboard(self):
        n = 16
        i, j = np.indices((n, n))
        tree = QuadTree()
        tree.compress_raster(((i + j) % 2).astype(np.uint8))

        assert tree.compressed_size == (4 * n * n - 1) // 3
        assert tree.compression_ratio < 0

    def test_write_empty_tree(self, tmp_path):
        path = tmp_path / "out.rit"

        with pytest.raises(QuadtreeStateError):
            QuadTree().write(str(path))
        assert not path.exists()

    def test_serialize_empty_tree(self):
        with pytest.raises(QuadtreeStateError):
            QuadTree().serialize()

    def test_recompress_replaces_state(self, example_tree):
        example_tree.compress_raster(np.full((4, 4), 3, dtype=np.uint8))

        assert example_tree.root == Leaf(3)
        assert example_tree.dimension == 4
        assert example_tree.raw_size == 16
        assert example_tree.compressed_size == 1
        assert (example_tree.raster == 3).all()

    def test_failed_uncompress_keeps_state(self, example_tree):
        with pytest.raises(QuadtreeTruncationError):
            example_tree.uncompress_values(4, [-1, -1])

        assert example_tree.root == Split(Leaf(5), Leaf(5), Leaf(5), Leaf(7))
        np.testing.assert_array_equal(example_tree.raster, [[5, 5], [5, 7]])
        assert example_tree.compressed_size == 5

    def test_failed_compress_keeps_state(self, example_tree, tmp_path):
        raw_path = tmp_path / "bad.raw"
        raw_path.write_text("1\n2\nx\n4\n")

        with pytest.raises(QuadtreeFormatError):
            example_tree.compress(str(raw_path))

        assert example_tree.serialize() == [-1, 5, 5, 5, 7]
        assert example_tree.dimension == 2

    def test_failed_uncompress_on_empty_tree_stays_empty(self):
        tree = QuadTree()

        with pytest.raises(QuadtreeFormatError):
            tree.uncompress(io.StringIO("4\n-1\n5\n5\n5\n7\n7\n"))

        assert tree.is_empty()

    def test_raster_is_not_aliased(self):
        img = np.array([[1, 2], [3, 4]], dtype=np.uint8)
        tree = QuadTree()
        tree.compress_raster(img)

        img[0, 0] = 9

        assert tree.raster[0, 0] == 1

    def test_log_stats(self, capsys):
        tree = QuadTree(log_stats=True)
        tree.compress_raster(np.array([[5, 5], [5, 7]]))

        out = capsys.readouterr().out
        assert "Raw image size: 4" in out
        assert "Compressed image size: 5" in out
        assert "Compression: -25.00%" in out

    def test_no_output_by_default(self, example_tree, capsys):
        example_tree.uncompress(io.StringIO("4\n-1\n5\n5\n5\n7\n"))

        assert capsys.readouterr().out == ""
