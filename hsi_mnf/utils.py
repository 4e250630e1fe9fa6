"""
hsi_mnf.utils - Utility functions for MNF analysis

Configuration template, component summaries, plotting and package information.
"""

import numpy as np
import matplotlib.pyplot as plt
import pandas as pd
from typing import Any, Dict, Optional, Sequence


def create_config_template() -> Dict[str, Any]:
    """
    Create a template configuration dictionary for the MNF denoiser.

    Returns:
        Dictionary with default configuration parameters

    Example:
        >>> config = create_config_template()
        >>> config['mnf']['num_retained_bands'] = 10
    """
    template = {
        'mnf': {
            'num_retained_bands': None,
            'use_cached_statistics': False,
            'save_statistics': False,
            'basefilename': None
        },
        'subset': {
            'start_samp': None,
            'end_samp': None,
            'start_line': None,
            'end_line': None
        },
        'output': {
            'suffix': '_mnf',
            'overwrite': True
        }
    }

    return template


def summarize_components(transform, wavelengths: Optional[Sequence[float]] = None) -> pd.DataFrame:
    """
    Tabulate the MNF components of a fitted transform.

    Args:
        transform: MnfTransform returned by mnf_run() or mnf_denoise()
        wavelengths: Band wavelengths; when given, the wavelength with the
            largest absolute loading of each component is reported

    Returns:
        DataFrame with one row per component: eigenvalue (noise fraction),
        SNR estimate (1/lambda - 1), whether it is kept in the inverse, and
        the dominant band
    """
    eigenvalues = np.asarray(transform.eigenvalues, dtype=np.float64)
    with np.errstate(divide='ignore'):
        snr = np.where(eigenvalues > 0, 1.0 / eigenvalues - 1.0, np.inf)

    # rows of the inverse are the reconstruction loadings of each component
    dominant = np.argmax(np.abs(transform.inverse), axis=1)
    df = pd.DataFrame({
        'component': np.arange(1, eigenvalues.size + 1),
        'eigenvalue': eigenvalues,
        'snr': snr,
        'retained': np.arange(eigenvalues.size) < transform.num_retained_bands,
        'dominant_band': dominant,
    })
    if wavelengths is not None and len(wavelengths) == eigenvalues.size:
        df['dominant_wavelength'] = np.asarray(wavelengths, dtype=np.float64)[dominant]
    return df


def plot_eigenvalues(transform, title: str = 'MNF eigenvalues', figure_size=(10, 6), show: bool = True):
    """
    Plot the eigenvalue (noise fraction) spectrum of an MNF transform.

    The truncation rank used for the inverse transform is marked with a
    vertical line.

    Returns:
        The matplotlib Figure
    """
    eigenvalues = np.asarray(transform.eigenvalues)
    components = np.arange(1, eigenvalues.size + 1)

    fig, ax = plt.subplots(figsize=figure_size)
    ax.semilogy(components, np.clip(eigenvalues, np.finfo(float).tiny, None), 'o-', linewidth=2)
    if 0 < transform.num_retained_bands < eigenvalues.size:
        ax.axvline(transform.num_retained_bands + 0.5, color='red', linestyle='--',
                   label=f'Retained: {transform.num_retained_bands}')
        ax.legend()
    ax.set_xlabel('Component')
    ax.set_ylabel('Noise fraction (eigenvalue)')
    ax.set_title(title)
    ax.grid(True, alpha=0.3)
    fig.tight_layout()
    if show:
        plt.show()
    return fig


def reconstruction_error(original: np.ndarray, reconstructed: np.ndarray) -> float:
    """
    Root-mean-square difference between two cubes of equal shape.
    """
    original = np.asarray(original, dtype=np.float64)
    reconstructed = np.asarray(reconstructed, dtype=np.float64)
    if original.shape != reconstructed.shape:
        raise ValueError(f"Shape mismatch: {original.shape} vs {reconstructed.shape}")
    return float(np.sqrt(np.mean((original - reconstructed) ** 2)))


def print_package_info() -> None:
    """
    Print hsi_mnf package information including version and system details.
    """
    import platform
    import sys
    from datetime import datetime
    from . import __version__

    print("=" * 60)
    print("hsi_mnf - Minimum Noise Fraction for Hyperspectral Images")
    print("=" * 60)
    print(f"Version: {__version__}")
    print(f"Python: {sys.version.split()[0]}")
    print(f"Platform: {platform.system()} {platform.release()}")
    print(f"Timestamp: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print()

    print("Processing Pipeline:")
    print("  1. Image and noise statistics (line by line)")
    print("  2. Generalized eigenproblem (forward/inverse transforms)")
    print("  3. Forward MNF transform (band means removed)")
    print("  4. Rank-truncated inverse transform (band means restored)")
    print()

    print("Statistics cache files:")
    print("  <base>_imgcov.dat, <base>_noisecov.dat, <base>_bandmeans.dat")
    print("=" * 60)
