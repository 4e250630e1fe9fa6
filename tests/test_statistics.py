"""
Tests for the streaming statistics accumulator and the noise estimator
"""
import unittest
import numpy as np

from hsi_mnf.exceptions import ConfigurationError, NumericalFailure
from hsi_mnf.statistics import ImageStatistics, estimate_noise_line


class TestImageStatistics(unittest.TestCase):
    """Accumulation of means and covariances"""

    def setUp(self):
        rng = np.random.RandomState(0)
        mixing = rng.randn(5, 5)
        self.data = rng.randn(400, 5) @ mixing + np.array([1.0, -2.0, 3.0, 0.5, 10.0])

    def test_matches_population_covariance(self):
        """Single batch gives numpy's biased covariance and mean"""
        stats = ImageStatistics.from_data(self.data)

        self.assertEqual(stats.count, 400)
        np.testing.assert_allclose(stats.get_mean(), self.data.mean(axis=0), rtol=1e-12)
        np.testing.assert_allclose(stats.get_covariance(), np.cov(self.data, rowvar=False, bias=True),
                                   rtol=1e-7, atol=1e-10)

    def test_batch_order_independence(self):
        """Arbitrary batches in arbitrary order give the single-pass result"""
        single = ImageStatistics.from_data(self.data)

        batches = np.array_split(self.data, [7, 50, 51, 200, 333])
        order = np.random.RandomState(1).permutation(len(batches))
        streamed = ImageStatistics(5)
        for i in order:
            streamed.update(batches[i])

        self.assertEqual(streamed.count, single.count)
        np.testing.assert_allclose(streamed.get_mean(), single.get_mean(), rtol=1e-10)
        np.testing.assert_allclose(streamed.get_covariance(), single.get_covariance(), rtol=1e-5, atol=1e-8)

    def test_merge_equals_single_pass(self):
        """Merging accumulators over disjoint data gives the combined statistics"""
        first = ImageStatistics.from_data(self.data[:150])
        second = ImageStatistics.from_data(self.data[150:])
        first.merge(second)

        single = ImageStatistics.from_data(self.data)
        self.assertEqual(first.count, single.count)
        np.testing.assert_allclose(first.get_covariance(), single.get_covariance(), rtol=1e-5, atol=1e-8)

    def test_covariance_is_symmetric(self):
        cov = ImageStatistics.from_data(self.data).get_covariance()
        np.testing.assert_array_equal(cov, cov.T)

    def test_empty_batch_is_ignored(self):
        stats = ImageStatistics.from_data(self.data)
        before = stats.get_covariance()
        stats.update(np.zeros((0, 5)))
        self.assertEqual(stats.count, 400)
        np.testing.assert_array_equal(stats.get_covariance(), before)

    def test_query_before_update_fails(self):
        stats = ImageStatistics(3)
        with self.assertRaises(NumericalFailure) as ctx:
            stats.get_covariance()
        self.assertEqual(ctx.exception.stage, "statistics estimation")
        with self.assertRaises(NumericalFailure):
            stats.get_mean()

    def test_wrong_band_count_rejected(self):
        stats = ImageStatistics(4)
        with self.assertRaises(ConfigurationError):
            stats.update(np.ones((10, 3)))
        with self.assertRaises(ConfigurationError):
            stats.merge(ImageStatistics(3))

    def test_initialize_resets(self):
        stats = ImageStatistics.from_data(self.data)
        stats.initialize()
        self.assertEqual(stats.count, 0)
        self.assertFalse(np.any(stats.sum))
        self.assertFalse(np.any(stats.sum_outer))

    def test_deinitialized_rejects_updates(self):
        stats = ImageStatistics.from_data(self.data)
        stats.deinitialize()
        with self.assertRaises(ConfigurationError):
            stats.update(self.data)


class TestNoiseEstimation(unittest.TestCase):
    """Adjacent-pixel differencing"""

    def test_differences_of_adjacent_samples(self):
        line = np.array([[1.0, 2.0], [3.0, 1.0], [2.0, 5.0]], dtype=np.float32)
        noise = estimate_noise_line(line)

        self.assertEqual(noise.shape, (2, 2))
        self.assertEqual(noise.dtype, np.float64)
        np.testing.assert_array_equal(noise, [[-2.0, 1.0], [1.0, -4.0]])

    def test_constant_line_has_zero_noise(self):
        line = np.full((10, 4), 7.5, dtype=np.float32)
        np.testing.assert_array_equal(estimate_noise_line(line), np.zeros((9, 4)))

    def test_single_sample_line(self):
        noise = estimate_noise_line(np.ones((1, 3)))
        self.assertEqual(noise.shape, (0, 3))

    def test_input_not_modified(self):
        line = np.arange(12, dtype=np.float32).reshape(4, 3)
        original = line.copy()
        estimate_noise_line(line)
        np.testing.assert_array_equal(line, original)

    def test_rejects_non_2d(self):
        with self.assertRaises(ConfigurationError):
            estimate_noise_line(np.ones(5))


if __name__ == '__main__':
    unittest.main()
