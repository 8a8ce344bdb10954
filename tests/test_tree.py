import numpy as np

from outlier_detection.isolation import PartitionTree, PartitionTreeNode


def test_single_row_is_a_leaf(rng):
    node = PartitionTreeNode.build(np.array([[1.0, 2.0]]), 0, 5, rng)
    assert node.is_leaf
    assert node.size == 1
    assert node.height == 0


def test_height_limit_makes_a_leaf(rng):
    Xs = rng.randn(20, 2)
    node = PartitionTreeNode.build(Xs, 3, 3, rng)
    assert node.is_leaf
    assert node.size == 20
    assert node.height == 3


def test_constant_feature_makes_a_leaf(rng):
    Xs = np.tile([[4.0, -1.0]], (6, 1))
    node = PartitionTreeNode.build(Xs, 0, 5, rng)
    assert node.is_leaf
    assert node.size == 6


def test_split_value_lies_strictly_between_min_and_max():
    for seed in range(50):
        rng = np.random.RandomState(seed)
        node = PartitionTreeNode.build(np.array([[0.0], [1.0]]), 0, 4, rng)
        assert not node.is_leaf
        assert 0.0 < node.split_value < 1.0
        assert node.left.size == 1 and node.right.size == 1
        assert node.left.height == node.right.height == 1


def test_leaf_sizes_sum_to_sample_count(rng):
    Xs = rng.randn(200, 3)
    tree = PartitionTree().fit(Xs, sample_size=64, rng=rng)
    leaves = list(tree.leaves())
    assert sum(leaf.size for leaf in leaves) == 64
    assert all(leaf.height <= tree.max_height for leaf in leaves)
    assert tree.max_height == 6


def test_leaf_size_counts_rows_reaching_it(rng):
    Xs = rng.randn(50, 2)
    tree = PartitionTree().fit(Xs, sample_size=50, rng=rng)
    counts: dict[int, int] = {}
    for row in Xs:
        node = tree.root
        while not node.is_leaf:
            node = node.left if row[node.split_feature] < node.split_value else node.right
        counts[id(node)] = counts.get(id(node), 0) + 1
    for leaf in tree.leaves():
        assert counts.get(id(leaf), 0) == leaf.size


def test_sample_size_larger_than_data_is_clamped(rng):
    Xs = rng.randn(10, 2)
    tree = PartitionTree().fit(Xs, sample_size=1000, rng=rng)
    assert tree.sample_size == 10
    assert sum(leaf.size for leaf in tree.leaves()) == 10


def test_path_length_matches_batch(rng):
    Xs = rng.randn(100, 2)
    tree = PartitionTree().fit(Xs, sample_size=100, rng=rng)
    queries = np.vstack([Xs[:20], rng.randn(20, 2) * 5])
    batch = tree.path_lengths(queries)
    single = np.array([tree.path_length(point) for point in queries])
    np.testing.assert_array_equal(batch, single)


def test_missing_child_ends_the_walk():
    root = PartitionTreeNode(height=0, size=3)
    root.split_feature = 0
    root.split_value = 0.5
    root.left = PartitionTreeNode(height=1, size=3)

    assert root.path_length(np.array([0.0])) == 1.0
    assert root.path_length(np.array([2.0])) == 1.0
    np.testing.assert_array_equal(root.path_lengths_batch(np.array([[0.0], [2.0]])), [1.0, 1.0])


def test_dict_round_trip_preserves_paths(rng):
    Xs = rng.randn(80, 3)
    tree = PartitionTree().fit(Xs, sample_size=32, rng=rng)
    restored = PartitionTree.from_dict(tree.to_dict())
    assert restored.sample_size == tree.sample_size
    assert restored.max_height == tree.max_height
    np.testing.assert_array_equal(restored.path_lengths(Xs), tree.path_lengths(Xs))

