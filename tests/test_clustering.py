import numpy as np

from starloc.modules.clustering import find_clusters


def test_clusters_are_deterministic():
    """Clustering the same input twice gives the same clusters."""
    rng = np.random.default_rng(0)
    points = rng.uniform(0, 200, size=(40, 2))

    first = find_clusters(points, 25.0, 1, 40)
    second = find_clusters(points, 25.0, 1, 40)

    assert len(first) == len(second)
    for a, b in zip(first, second):
        assert np.array_equal(a, b)


def test_point_joins_newest_cluster():
    """A point close to two clusters joins the newest one."""
    points = np.array([[0.0, 0.0], [100.0, 0.0], [50.0, 0.0]])

    clusters = find_clusters(points, 50.0, 1, 10)

    assert len(clusters) == 2
    assert np.array_equal(clusters[0], [[0.0, 0.0]])
    assert np.array_equal(clusters[1], [[100.0, 0.0], [50.0, 0.0]])


def test_clusters_are_not_merged_later():
    """A point bridging two existing clusters does not merge them."""
    points = np.array([[0.0, 0.0], [20.0, 0.0], [10.0, 0.0]])

    clusters = find_clusters(points, 10.0, 1, 10)

    assert [len(c) for c in clusters] == [1, 2]


def test_chain_within_radius():
    """Points linked by a chain of close neighbours end in one cluster."""
    points = np.array([[0.0, 0.0], [8.0, 0.0], [16.0, 0.0], [24.0, 0.0]])

    clusters = find_clusters(points, 10.0, 1, 10)

    assert len(clusters) == 1
    assert len(clusters[0]) == 4


def test_size_filter():
    """Clusters outside the size bounds are dropped."""
    points = np.array(
        [
            [0.0, 0.0], [1.0, 0.0],  # 2
            [100.0, 0.0], [101.0, 0.0], [102.0, 0.0],  # 3
            [200.0, 0.0], [201.0, 0.0], [202.0, 0.0], [203.0, 0.0],  # 4
        ]
    )

    clusters = find_clusters(points, 5.0, 3, 3)

    assert len(clusters) == 1
    assert np.allclose(clusters[0][:, 0], [100.0, 101.0, 102.0])


def test_empty_input():
    """No points, no clusters."""
    assert find_clusters(np.empty((0, 2)), 10.0, 1, 10) == []
