"""
Streaming image statistics and noise estimation for the MNF transform.

Statistics are accumulated line by line so that a cube never has to be
duplicated in memory. Sums are kept in float64 and the covariance is only
formed when requested, which makes updates order independent.
"""

import numpy as np

from .exceptions import ConfigurationError, NumericalFailure


class ImageStatistics:
    """
    Running mean and covariance of a stream of band vectors.

    Keeps the sample count, the per-band sum and the sum of outer products.
    Any split of the data into batches, supplied in any order, gives the same
    mean and covariance up to floating-point summation order.

    Parameters:
    -----------
    bands : int
        Length of every sample vector.
    """

    def __init__(self, bands):
        if bands < 1:
            raise ConfigurationError(f"Number of bands must be positive, got {bands}")
        self.bands = int(bands)
        self.initialize()

    def initialize(self):
        """Zero the accumulated state."""
        self.count = 0
        self.sum = np.zeros(self.bands, dtype=np.float64)
        self.sum_outer = np.zeros((self.bands, self.bands), dtype=np.float64)

    def deinitialize(self):
        """Release the accumulation buffers."""
        self.count = 0
        self.sum = None
        self.sum_outer = None

    @classmethod
    def from_data(cls, batch):
        """
        Create statistics from a single batch of shape (n_samples, bands).
        """
        batch = np.asarray(batch)
        if batch.ndim != 2:
            raise ConfigurationError(f"Expected a 2D batch (n_samples, bands), got shape {batch.shape}")
        stats = cls(batch.shape[1])
        stats.update(batch)
        return stats

    def update(self, batch):
        """
        Add a batch of sample vectors.

        Parameters:
        -----------
        batch : numpy.ndarray
            Array of shape (n_samples, bands). Empty batches are accepted and
            contribute nothing.
        """
        if self.sum is None:
            raise ConfigurationError("ImageStatistics has been deinitialized")

        batch = np.asarray(batch, dtype=np.float64)
        if batch.ndim != 2 or batch.shape[1] != self.bands:
            raise ConfigurationError(
                f"Expected batch of shape (n_samples, {self.bands}), got {batch.shape}"
            )

        self.count += batch.shape[0]
        self.sum += batch.sum(axis=0)
        self.sum_outer += batch.T @ batch
        return self

    def merge(self, other):
        """
        Add the contents of another accumulator over the same bands.

        This is the reduction step for statistics collected over disjoint
        sets of lines.
        """
        if other.bands != self.bands:
            raise ConfigurationError(f"Cannot merge statistics over {other.bands} bands into {self.bands} bands")
        self.count += other.count
        self.sum += other.sum
        self.sum_outer += other.sum_outer
        return self

    def _check_populated(self):
        if self.sum is None or self.count == 0:
            raise NumericalFailure("statistics estimation", 0, "no samples have been accumulated")

    def get_mean(self):
        """Return the per-band mean, sum / count."""
        self._check_populated()
        return self.sum / self.count

    def get_covariance(self):
        """
        Return the population covariance sum_outer / count - mean mean^T.
        """
        self._check_populated()
        mean = self.sum / self.count
        cov = self.sum_outer / self.count - np.outer(mean, mean)
        # round-off can break exact symmetry
        return (cov + cov.T) / 2

    def __repr__(self):
        return f"ImageStatistics(bands={self.bands}, count={self.count})"


def estimate_noise_line(line):
    """
    Estimate per-pixel noise for one image line.

    Noise is taken as the difference between horizontally adjacent pixels,
    assuming the signal is locally smooth while the noise is spatially
    uncorrelated.

    Parameters:
    -----------
    line : numpy.ndarray
        Line of shape (samples, bands).

    Returns:
    --------
    noise : numpy.ndarray
        Array of shape (samples - 1, bands), float64. Empty for lines with
        fewer than two samples.
    """
    line = np.asarray(line)
    if line.ndim != 2:
        raise ConfigurationError(f"Expected a 2D line (samples, bands), got shape {line.shape}")
    if line.shape[0] < 2:
        return np.zeros((0, line.shape[1]), dtype=np.float64)
    return line[:-1, :].astype(np.float64) - line[1:, :].astype(np.float64)
