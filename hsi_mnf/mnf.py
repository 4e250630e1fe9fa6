"""
Minimum Noise Fraction (MNF) transform engine.

The transform is estimated from two streams of statistics: the image lines
themselves and a noise estimate derived from each line. The generalized
eigenproblem

    noise_cov v = lambda img_cov v

gives the forward transform (eigenvectors as columns, ascending lambda, so the
first component has the lowest noise fraction, i.e. the highest SNR). The
inverse transform is the explicit matrix inverse of the forward transform.
Both are applied in place on a (lines, samples, bands) float32 buffer, one
line at a time.
"""

import warnings

import numpy as np
from scipy.linalg import lapack
from tqdm import tqdm

from . import persistence
from .exceptions import ConfigurationError, NumericalFailure
from .statistics import ImageStatistics, estimate_noise_line

# Generalized eigenvalues below -NEGATIVE_EIGENVALUE_TOL * max(|lambda|, 1) mean
# the noise covariance is indefinite.
NEGATIVE_EIGENVALUE_TOL = 1e-10


class MnfWorkspace:
    """
    Per-run state of an MNF computation.

    Holds the rank-selection matrix R, a ones vector over the samples of a
    line used to broadcast band means, and the band means once estimated.

    Parameters:
    -----------
    bands : int
        Number of spectral bands (at least 2).
    samples : int
        Number of samples per line.
    num_retained_bands : int
        Number of MNF components kept in the inverse transform (0..bands).
    basefilename : str, optional
        Base path of persisted statistics (<base>_imgcov.dat, ...).
    verbose : bool, optional (default=False)
        Print progress and show progress bars for the line passes.
    """

    def __init__(self, bands, samples, num_retained_bands, basefilename=None, verbose=False):
        self.basefilename = basefilename
        self.verbose = verbose
        self.means = None
        self.ones_samples = None
        self.R = None
        self.initialize(bands, samples, num_retained_bands)

    def initialize(self, bands, samples, num_retained_bands):
        """Validate dimensions and allocate R and the ones vector."""
        if bands < 2:
            raise ConfigurationError(f"MNF needs at least 2 bands, got {bands}")
        if samples < 1:
            raise ConfigurationError(f"Number of samples must be positive, got {samples}")
        if num_retained_bands < 0 or num_retained_bands > bands:
            raise ConfigurationError(
                f"Number of retained bands must be in [0, {bands}], got {num_retained_bands}"
            )
        if num_retained_bands == 0:
            warnings.warn("No MNF components retained, the inverse transform will return the band means only")

        self.bands = int(bands)
        self.samples = int(samples)
        self.num_retained_bands = int(num_retained_bands)

        self.ones_samples = np.ones(self.samples, dtype=np.float32)
        self.R = np.zeros((self.bands, self.bands), dtype=np.float64)
        retained = np.arange(self.num_retained_bands)
        self.R[retained, retained] = 1.0
        self.means = None

    def deinitialize(self):
        """Release means, ones vector and R."""
        self.means = None
        self.ones_samples = None
        self.R = None

    @property
    def active(self):
        return self.R is not None

    def check_active(self):
        if not self.active:
            raise ConfigurationError("MNF workspace has been deinitialized")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.deinitialize()
        return False

    def remove_mean(self, means, line):
        """Subtract band means from every sample of a (samples, bands) line, in place."""
        line -= np.outer(self.ones_samples[:line.shape[0]], means)
        return line

    def add_mean(self, means, line):
        """Add band means to every sample of a (samples, bands) line, in place."""
        line += np.outer(self.ones_samples[:line.shape[0]], means)
        return line

    def line_range(self, lines, desc):
        """Iterate over line indices, with a progress bar when verbose."""
        return tqdm(range(lines), desc=desc, disable=not self.verbose)

    def __repr__(self):
        return (f"MnfWorkspace(bands={self.bands}, samples={self.samples}, "
                f"num_retained_bands={self.num_retained_bands})")


class MnfTransform:
    """
    Result of an MNF run.

    Attributes:
    -----------
    forward : numpy.ndarray
        (bands, bands) forward transform, eigenvectors as columns.
    inverse : numpy.ndarray
        (bands, bands) inverse of the forward transform.
    eigenvalues : numpy.ndarray
        Noise fractions in ascending order (best SNR first).
    means : numpy.ndarray
        Band means removed before the forward transform.
    image_cov, noise_cov : numpy.ndarray
        Covariances the transform was built from.
    num_retained_bands : int
        Components kept in the inverse transform.
    """

    def __init__(self, forward, inverse, eigenvalues, means, image_cov, noise_cov, num_retained_bands):
        self.forward = forward
        self.inverse = inverse
        self.eigenvalues = eigenvalues
        self.means = means
        self.image_cov = image_cov
        self.noise_cov = noise_cov
        self.num_retained_bands = num_retained_bands

    @property
    def bands(self):
        return self.forward.shape[0]

    def __repr__(self):
        return f"MnfTransform(bands={self.bands}, num_retained_bands={self.num_retained_bands})"


def _check_buffer(workspace, data):
    """Reject image buffers the engine cannot transform in place."""
    if not isinstance(data, np.ndarray) or data.ndim != 3:
        raise ConfigurationError("Image must be a 3D numpy array of shape (lines, samples, bands)")
    if data.dtype != np.float32:
        raise ConfigurationError(f"Image buffer must be float32, got {data.dtype}")
    if not data.flags.writeable:
        raise ConfigurationError("Image buffer is read-only")
    lines, samples, bands = data.shape
    if lines < 1:
        raise ConfigurationError("Image has no lines")
    if bands != workspace.bands or samples != workspace.samples:
        raise ConfigurationError(
            f"Image shape {data.shape} does not match workspace "
            f"(samples={workspace.samples}, bands={workspace.bands})"
        )


def estimate_statistics(workspace, data, img_stats=None, noise_stats=None):
    """
    Accumulate image and noise statistics over all lines of the image.

    Parameters:
    -----------
    workspace : MnfWorkspace
        Active workspace; its band means are set from the image statistics.
    data : numpy.ndarray
        Image buffer of shape (lines, samples, bands).
    img_stats, noise_stats : ImageStatistics, optional
        Accumulators to update. New ones are created when omitted, which
        allows statistics of several images to be combined.

    Returns:
    --------
    img_stats, noise_stats : ImageStatistics
    """
    workspace.check_active()
    _check_buffer(workspace, data)

    if img_stats is None:
        img_stats = ImageStatistics(workspace.bands)
    if noise_stats is None:
        noise_stats = ImageStatistics(workspace.bands)

    for i in workspace.line_range(data.shape[0], "Estimating MNF statistics"):
        line = data[i]
        img_stats.update(line)
        noise_stats.update(estimate_noise_line(line))

    workspace.means = img_stats.get_mean()
    if workspace.verbose:
        print(f"✓ Statistics estimated: {img_stats.count} image samples, {noise_stats.count} noise samples")
    return img_stats, noise_stats


def build_transforms(img_cov, noise_cov):
    """
    Build the forward and inverse MNF transforms.

    Parameters:
    -----------
    img_cov : numpy.ndarray
        (bands, bands) image covariance, symmetric positive definite.
    noise_cov : numpy.ndarray
        (bands, bands) noise covariance, symmetric positive semi-definite.

    Returns:
    --------
    forward : numpy.ndarray
        Eigenvectors of noise_cov v = lambda img_cov v as columns, sorted by
        ascending eigenvalue.
    inverse : numpy.ndarray
        Inverse of ``forward``.
    eigenvalues : numpy.ndarray
        Ascending eigenvalues (noise fractions).

    Raises:
    -------
    ConfigurationError
        Matrices are not square, differ in shape or have fewer than 2 bands.
    NumericalFailure
        The eigensolver, the LU factorization or the inversion failed, or the
        noise covariance is indefinite.
    """
    # the LAPACK kernels overwrite their inputs
    img_cov = np.array(img_cov, dtype=np.float64)
    noise_cov = np.array(noise_cov, dtype=np.float64)

    if img_cov.ndim != 2 or img_cov.shape[0] != img_cov.shape[1]:
        raise ConfigurationError(f"Image covariance must be square, got shape {img_cov.shape}")
    if noise_cov.shape != img_cov.shape:
        raise ConfigurationError(
            f"Noise covariance shape {noise_cov.shape} does not match image covariance {img_cov.shape}"
        )
    bands = img_cov.shape[0]
    if bands < 2:
        raise ConfigurationError(f"MNF needs at least 2 bands, got {bands}")

    eigenvalues, eigenvectors, info = lapack.dsygv(noise_cov, img_cov, itype=1, jobz='V', uplo='L')
    if info != 0:
        if info > bands:
            detail = "image covariance is not positive definite"
        else:
            detail = "eigensolver did not converge"
        raise NumericalFailure("eigen-decomposition", int(info), detail)

    tol = NEGATIVE_EIGENVALUE_TOL * max(np.max(np.abs(eigenvalues)), 1.0)
    negative = np.flatnonzero(eigenvalues < -tol)
    if negative.size:
        raise NumericalFailure("eigen-decomposition", -int(negative[0] + 1),
                               "noise covariance is not positive semi-definite")

    order = np.argsort(eigenvalues, kind='stable')
    eigenvalues = eigenvalues[order]
    forward = np.ascontiguousarray(eigenvectors[:, order])

    lu, piv, info = lapack.dgetrf(forward)
    if info != 0:
        raise NumericalFailure("LU decomposition", int(info), "forward transform is singular")
    inverse, info = lapack.dgetri(lu, piv)
    if info != 0:
        raise NumericalFailure("inversion", int(info), "forward transform could not be inverted")

    return forward, inverse, eigenvalues


def run_forward(workspace, forward, means, data):
    """
    Apply the forward MNF transform to every line, in place.

    Band means are removed from each line before it is multiplied with the
    transform, so output band j of a pixel is the projection of the centred
    pixel on eigenvector j.
    """
    workspace.check_active()
    _check_buffer(workspace, data)
    forward = np.asarray(forward, dtype=np.float64)
    means = np.asarray(means, dtype=np.float64)
    if forward.shape != (workspace.bands, workspace.bands) or means.shape != (workspace.bands,):
        raise ConfigurationError("Forward transform or band means do not match the workspace bands")

    for i in workspace.line_range(data.shape[0], "Forward MNF"):
        line = data[i].astype(np.float64)
        workspace.remove_mean(means, line)
        data[i] = line @ forward


def run_inverse(workspace, inverse, means, data):
    """
    Apply the rank-truncated inverse MNF transform to every line, in place.

    The inverse is post-multiplied with R once, which drops every component
    beyond ``workspace.num_retained_bands``. Band means are added back after
    the multiply.
    """
    workspace.check_active()
    _check_buffer(workspace, data)
    inverse = np.asarray(inverse, dtype=np.float64)
    means = np.asarray(means, dtype=np.float64)
    if inverse.shape != (workspace.bands, workspace.bands) or means.shape != (workspace.bands,):
        raise ConfigurationError("Inverse transform or band means do not match the workspace bands")

    inverse_short = inverse.T @ workspace.R

    for i in workspace.line_range(data.shape[0], "Inverse MNF"):
        line = data[i] @ inverse_short.T
        workspace.add_mean(means, line)
        data[i] = line


def mnf_run(workspace, data, use_cached_statistics=False, save_statistics=False, apply_inverse=True):
    """
    Run the full MNF pipeline on an image buffer, in place.

    Steps: statistics estimation (or loading), transform build, forward
    transform, rank-truncated inverse transform. The buffer is not touched
    until the transforms have been built successfully.

    Parameters:
    -----------
    workspace : MnfWorkspace
        Active workspace matching the image dimensions.
    data : numpy.ndarray
        float32 buffer of shape (lines, samples, bands).
    use_cached_statistics : bool, optional (default=False)
        Load covariances and band means from ``workspace.basefilename``
        instead of estimating them.
    save_statistics : bool, optional (default=False)
        Persist the estimated statistics to ``workspace.basefilename``.
    apply_inverse : bool, optional (default=True)
        If False, stop after the forward transform and leave the MNF
        components in the buffer.

    Returns:
    --------
    transform : MnfTransform
    """
    workspace.check_active()
    _check_buffer(workspace, data)
    if (use_cached_statistics or save_statistics) and not workspace.basefilename:
        raise ConfigurationError("basefilename must be set on the workspace to load or save statistics")

    if use_cached_statistics:
        img_cov, noise_cov, means = persistence.load_statistics(workspace.basefilename, workspace.bands)
        workspace.means = means
        if workspace.verbose:
            print(f"✓ Loaded cached statistics: {workspace.basefilename}")
    else:
        img_stats, noise_stats = estimate_statistics(workspace, data)
        img_cov = img_stats.get_covariance()
        noise_cov = noise_stats.get_covariance()
        means = workspace.means
        img_stats.deinitialize()
        noise_stats.deinitialize()
        if save_statistics:
            persistence.save_statistics(workspace.basefilename, img_cov, noise_cov, means)
            if workspace.verbose:
                print(f"✓ Saved statistics: {workspace.basefilename}")

    forward, inverse, eigenvalues = build_transforms(img_cov, noise_cov)
    if workspace.verbose:
        print(f"✓ MNF transform built: {workspace.bands} bands, "
              f"eigenvalue range [{eigenvalues[0]:.3e}, {eigenvalues[-1]:.3e}]")

    run_forward(workspace, forward, means, data)
    if apply_inverse:
        run_inverse(workspace, inverse, means, data)
        if workspace.verbose:
            print(f"✓ Reconstructed image from {workspace.num_retained_bands} of {workspace.bands} components")

    return MnfTransform(forward, inverse, eigenvalues, means, img_cov, noise_cov,
                        workspace.num_retained_bands)


def mnf_denoise(image, num_retained_bands, basefilename=None, use_cached_statistics=False,
                save_statistics=False, verbose=False):
    """
    Denoise a hyperspectral cube with the MNF transform.

    Convenience wrapper around :func:`mnf_run` working on a float32 copy of
    the input.

    Parameters:
    -----------
    image : numpy.ndarray
        Cube of shape (lines, samples, bands).
    num_retained_bands : int
        Number of highest-SNR components kept.

    Returns:
    --------
    denoised : numpy.ndarray
        float32 cube of the same shape.
    transform : MnfTransform
    """
    data = np.array(image, dtype=np.float32, order='C')
    if data.ndim != 3:
        raise ConfigurationError("Image must be a 3D array of shape (lines, samples, bands)")
    lines, samples, bands = data.shape

    with MnfWorkspace(bands, samples, num_retained_bands, basefilename=basefilename, verbose=verbose) as workspace:
        transform = mnf_run(workspace, data, use_cached_statistics=use_cached_statistics,
                            save_statistics=save_statistics)
    return data, transform
