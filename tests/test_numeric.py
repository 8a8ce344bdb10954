import math

import numpy as np
import pytest

from outlier_detection.numeric import (
    EULER_GAMMA,
    average_path_length,
    label_scores,
    max_tree_height,
    order_statistic_threshold,
    threshold_rank,
)


@pytest.mark.parametrize("m", [0, 1, 2])
def test_average_path_length_small_samples_is_one(m):
    assert average_path_length(m) == 1.0


def test_average_path_length_matches_harmonic_approximation():
    m = 256
    expected = 2.0 * (math.log(m - 1) + EULER_GAMMA) - 2.0 * (m - 1) / m
    assert average_path_length(m) == pytest.approx(expected)
    assert average_path_length(m) > average_path_length(100)


@pytest.mark.parametrize("sample_size,height", [(1, 0), (2, 1), (3, 2), (256, 8), (257, 9), (110, 7)])
def test_max_tree_height(sample_size, height):
    assert max_tree_height(sample_size) == height


def test_threshold_rank_is_clamped_to_last_index():
    assert threshold_rank(100, 0.1) == 90
    assert threshold_rank(10, 1e-9) == 9
    assert threshold_rank(3, 0.5) == 1


def test_order_statistic_threshold_picks_nearest_rank():
    scores = np.array([0.9, 0.1, 0.5, 0.3, 0.7, 0.2, 0.8, 0.4, 0.6, 1.0])
    # ascending index floor(0.8 * 10) = 8
    assert order_statistic_threshold(scores, 0.2) == 0.9


def test_label_scores_uses_strict_comparison():
    labels = label_scores(np.array([0.2, 0.5, 0.51]), 0.5)
    assert labels.tolist() == [1, 1, -1]
