"""
Plain-text persistence of MNF statistics.

Statistics for an image are stored next to each other under a common base
name:

    <base>_imgcov.dat     bands rows of bands floats (image covariance)
    <base>_noisecov.dat   bands rows of bands floats (noise covariance)
    <base>_bandmeans.dat  one row of bands floats

Values are whitespace separated and written row-major, so a later load gives
back what was saved up to print precision.
"""

import os

import numpy as np

from .exceptions import MissingArtifactError

FLOAT_FORMAT = '%.9e'


def statistics_paths(basefilename):
    """Return the (image covariance, noise covariance, band means) file paths."""
    basefilename = os.fspath(basefilename)
    return (basefilename + "_imgcov.dat",
            basefilename + "_noisecov.dat",
            basefilename + "_bandmeans.dat")


def save_covariance(cov, filename):
    cov = np.asarray(cov, dtype=np.float64)
    if cov.ndim != 2 or cov.shape[0] != cov.shape[1]:
        raise ValueError(f"Covariance must be a square matrix, got shape {cov.shape}")
    np.savetxt(filename, cov, fmt=FLOAT_FORMAT, delimiter=' ')


def save_means(means, filename):
    means = np.asarray(means, dtype=np.float64).ravel()
    np.savetxt(filename, means[np.newaxis, :], fmt=FLOAT_FORMAT, delimiter=' ')


def _read_values(filename):
    try:
        return np.loadtxt(filename, dtype=np.float64, ndmin=2)
    except OSError as e:
        raise MissingArtifactError(filename, str(e)) from e
    except ValueError as e:
        raise MissingArtifactError(filename, f"malformed contents ({e})") from e


def load_covariance(filename, bands):
    """
    Read a (bands, bands) covariance matrix.

    Raises:
    -------
    MissingArtifactError
        The file is missing, unreadable or does not hold bands x bands values.
    """
    cov = _read_values(filename)
    if cov.shape != (bands, bands):
        raise MissingArtifactError(filename, f"expected {bands}x{bands} values, found shape {cov.shape}")
    return cov


def load_means(filename, bands):
    """Read a band-means vector of length ``bands``."""
    means = _read_values(filename).ravel()
    if means.size != bands:
        raise MissingArtifactError(filename, f"expected {bands} band means, found {means.size}")
    return means


def save_statistics(basefilename, img_cov, noise_cov, means):
    """Write image covariance, noise covariance and band means under ``basefilename``."""
    img_path, noise_path, means_path = statistics_paths(basefilename)
    directory = os.path.dirname(img_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    save_covariance(img_cov, img_path)
    save_covariance(noise_cov, noise_path)
    save_means(means, means_path)
    return img_path, noise_path, means_path


def load_statistics(basefilename, bands):
    """
    Load statistics written by :func:`save_statistics`.

    Returns:
    --------
    img_cov, noise_cov, means : numpy.ndarray

    Raises:
    -------
    MissingArtifactError
        Any of the three files is missing or malformed.
    """
    img_path, noise_path, means_path = statistics_paths(basefilename)
    img_cov = load_covariance(img_path, bands)
    noise_cov = load_covariance(noise_path, bands)
    means = load_means(means_path, bands)
    return img_cov, noise_cov, means
