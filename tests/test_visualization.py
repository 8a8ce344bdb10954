import matplotlib.pyplot as plt
import numpy as np
import pytest

from outlier_detection import ConfigurationError, Detector
from outlier_detection.isolation import PartitionTree
from outlier_detection.visualization import plot_detections, plot_partition_space_2d


def test_plot_detections_draws_both_groups(far_cluster_data):
    Xs, _ = far_cluster_data
    labels = Detector(n_estimators=20, random_state=0).fit(Xs).detect(Xs)

    ax = plot_detections(Xs, labels)
    normal, anomalies = ax.collections
    assert normal.get_offsets().shape[0] == np.sum(labels == 1)
    assert anomalies.get_offsets().shape[0] == np.sum(labels == -1)
    plt.close(ax.figure)


def test_plot_detections_requires_two_columns():
    with pytest.raises(ConfigurationError):
        plot_detections(np.zeros((5, 1)), np.ones(5))


def test_plot_detections_rejects_misaligned_labels(rng):
    with pytest.raises(ConfigurationError):
        plot_detections(rng.randn(5, 2), np.ones(4))


@pytest.mark.parametrize("labels", [[1, 0, -1, 1, 1], [1, 1, 2, -1, 1], [0, 1, 0, 1, 0]])
def test_plot_detections_rejects_unknown_labels(rng, labels):
    with pytest.raises(ConfigurationError):
        plot_detections(rng.randn(5, 2), np.array(labels))


def test_plot_partition_space_draws_one_line_per_visible_split(rng):
    Xs = rng.randn(40, 2)
    tree = PartitionTree().fit(Xs, sample_size=40, rng=rng)
    splits = [node for node in _internal_nodes(tree.root)]

    fig, ax = plt.subplots()
    plot_partition_space_2d(tree, Xs, ax=ax)
    # bounding box plus one line per split
    assert len(ax.lines) == 1 + len(splits)
    plt.close(fig)


def _internal_nodes(node):
    if node is None or node.is_leaf:
        return
    yield node
    yield from _internal_nodes(node.left)
    yield from _internal_nodes(node.right)
