"""
hsi_mnf - Minimum Noise Fraction transform for hyperspectral images v0.1.0

hsi_mnf estimates the MNF transform of a hyperspectral cube from streamed
image lines, orders components by signal-to-noise ratio and reconstructs the
image from the best components only. Statistics are accumulated line by line
and can be cached on disk so that large cubes need a single statistics pass.

The package consists of the following modules:
- statistics: streaming mean/covariance accumulator and noise estimation
- mnf: workspace, transform builder, forward/inverse appliers and the full run
- persistence: plain-text load/save of covariances and band means
- core: ENVI image loading and saving (HS_image, ImageSubset)
- pipeline: HS_denoiser with configuration and folder processing
- utils: configuration template, component summaries and plots
"""

from .core import HS_image, ImageSubset
from .exceptions import (
    MnfError,
    ConfigurationError,
    NumericalFailure,
    MissingArtifactError
)
from .statistics import ImageStatistics, estimate_noise_line
from .mnf import (
    MnfWorkspace,
    MnfTransform,
    estimate_statistics,
    build_transforms,
    run_forward,
    run_inverse,
    mnf_run,
    mnf_denoise
)
from .persistence import save_statistics, load_statistics
from .pipeline import HS_denoiser
from .utils import (
    create_config_template,
    summarize_components,
    plot_eigenvalues,
    reconstruction_error,
    print_package_info
)


# Version info
__version__ = "0.1.0"

# Define what gets imported with "from hsi_mnf import *"
__all__ = [
    # Core classes
    "HS_image",
    "ImageSubset",
    "HS_denoiser",

    # Errors
    "MnfError",
    "ConfigurationError",
    "NumericalFailure",
    "MissingArtifactError",

    # MNF engine
    "ImageStatistics",
    "estimate_noise_line",
    "MnfWorkspace",
    "MnfTransform",
    "estimate_statistics",
    "build_transforms",
    "run_forward",
    "run_inverse",
    "mnf_run",
    "mnf_denoise",

    # Persistence
    "save_statistics",
    "load_statistics",

    # Utility functions
    "create_config_template",
    "summarize_components",
    "plot_eigenvalues",
    "reconstruction_error",
    "print_package_info"
]
