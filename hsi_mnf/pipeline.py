import os
import copy
import glob
import json

import spectral as sp

from .core import HS_image, ImageSubset
from .exceptions import MnfError
from .mnf import MnfWorkspace, mnf_run
from .utils import create_config_template


class HS_denoiser:
    """
    MNF denoising of hyperspectral images with a stored configuration.

    Features:
    - Load an ENVI image (optionally a spatial subset)
    - Estimate MNF statistics, or reuse statistics cached on disk
    - Forward and rank-truncated inverse transform of the image
    - Save/load configuration as JSON
    - Folder processing with a shared configuration
    - Verbose control for all print outputs
    """

    def __init__(self, image_path=None, verbose=True):
        """Initialize with optional image path and verbose control."""
        self.image_path = image_path
        self.image = None
        self.original_image = None
        self.transform = None
        self.verbose = verbose
        self.config = create_config_template()

        if image_path:
            self.load_image(image_path)

    def configure(self, num_retained_bands=None, use_cached_statistics=None, save_statistics=None,
                  basefilename=None, subset=None):
        """
        Update the MNF configuration. Arguments left as None keep their value.

        Args:
            num_retained_bands (int): Components kept in the inverse transform
            use_cached_statistics (bool): Load statistics from basefilename
            save_statistics (bool): Write estimated statistics to basefilename
            basefilename (str): Base path of the statistics files
            subset (ImageSubset or dict): Spatial subset applied when loading images
        """
        mnf_config = self.config['mnf']
        if num_retained_bands is not None:
            mnf_config['num_retained_bands'] = int(num_retained_bands)
        if use_cached_statistics is not None:
            mnf_config['use_cached_statistics'] = bool(use_cached_statistics)
        if save_statistics is not None:
            mnf_config['save_statistics'] = bool(save_statistics)
        if basefilename is not None:
            mnf_config['basefilename'] = str(basefilename)
        if subset is not None:
            self.config['subset'] = subset.to_dict() if isinstance(subset, ImageSubset) else dict(subset)
        return self

    def load_image(self, image_path):
        """Load a hyperspectral image, applying the configured subset."""
        self.image_path = image_path
        subset = ImageSubset.from_config(self.config.get('subset'))
        self.image = HS_image(image_path, subset=subset)
        self.original_image = copy.deepcopy(self.image)
        self.transform = None
        if self.verbose:
            print(f"✓ Loaded image: {os.path.basename(image_path)}")
            print(f"  Shape: {self.image.img.shape}")
            if self.image.wavelengths:
                print(f"  Wavelength range: {min(self.image.wavelengths)}-{max(self.image.wavelengths)} nm")
        return self

    def set_image(self, image):
        """Use an already loaded HS_image (e.g. HS_image.from_array)."""
        self.image = image
        self.image_path = image.data_path
        self.original_image = copy.deepcopy(image)
        self.transform = None
        return self

    def _statistics_base(self):
        basefilename = self.config['mnf'].get('basefilename')
        if basefilename is None and self.image_path:
            basefilename = os.path.splitext(self.image_path)[0]
        return basefilename

    def run(self, apply_inverse=True):
        """
        Run the MNF transform on the loaded image, in place.

        Args:
            apply_inverse (bool): If False, keep the forward MNF components

        Returns:
            self
        """
        if self.image is None:
            raise ValueError("No image loaded. Call load_image() first.")

        mnf_config = self.config['mnf']
        lines, samples, bands = self.image.img.shape
        num_retained = mnf_config.get('num_retained_bands')
        if num_retained is None:
            num_retained = bands

        workspace = MnfWorkspace(bands, samples, num_retained, basefilename=self._statistics_base(),
                                 verbose=self.verbose)
        with workspace:
            self.transform = mnf_run(
                workspace,
                self.image.img,
                use_cached_statistics=mnf_config.get('use_cached_statistics', False),
                save_statistics=mnf_config.get('save_statistics', False),
                apply_inverse=apply_inverse,
            )
        return self

    def reset(self):
        """Restore the image as loaded."""
        if self.original_image is None:
            raise ValueError("No image loaded.")
        self.image = copy.deepcopy(self.original_image)
        self.transform = None
        return self

    def get_HScube(self):
        """Get the current hyperspectral data cube."""
        if self.image is None:
            raise ValueError("No image loaded.")
        return self.image.img

    def get_config(self):
        """Get the current configuration dictionary."""
        return copy.deepcopy(self.config)

    def save_result(self, hdr_path):
        """Save the current image as an ENVI float32 image."""
        if self.image is None:
            raise ValueError("No image loaded.")
        description = None
        if self.transform is not None:
            description = (f"MNF reconstruction with {self.transform.num_retained_bands} "
                           f"of {self.transform.bands} components")
        self.image.save(hdr_path, description=description)
        if self.verbose:
            print(f"✓ Saved result: {hdr_path}")
        return hdr_path

    def save_config(self, filepath):
        """Save current configuration to JSON file."""
        with open(filepath, 'w') as f:
            json.dump({'mnf_config': self.config}, f, indent=2)
        if self.verbose:
            print(f"✓ Configuration saved to: {filepath}")
        return self

    def load_config(self, filepath):
        """Load configuration from JSON file, filling missing keys from the template."""
        with open(filepath, 'r') as f:
            saved_config = json.load(f)

        config = create_config_template()
        for section, values in saved_config.get('mnf_config', {}).items():
            if section in config and isinstance(values, dict):
                config[section].update(values)
            else:
                config[section] = values
        self.config = config

        if self.verbose:
            print(f"✓ Configuration loaded from: {filepath}")
        return self

    @staticmethod
    def process_folder(folder_path, output_folder=None, config=None, config_path=None,
                       pattern="*.hdr", verbose=True):
        """
        Denoise all hyperspectral images in a folder.

        Args:
            folder_path (str): Path to folder containing images
            output_folder (str, optional): Where results are written (default: folder_path)
            config (dict, optional): Configuration dictionary
            config_path (str, optional): Path to config file to load (takes precedence over config)
            pattern (str): File pattern to match (default: "*.hdr")
            verbose (bool): Enable verbose output

        Returns:
            dict: {filename: output header path} for the images that were processed
        """
        template = HS_denoiser(verbose=False)
        if config_path is not None:
            template.load_config(config_path)
        elif config is not None:
            template.config = copy.deepcopy(config)
        final_config = template.get_config()

        suffix = final_config['output'].get('suffix', '_mnf')
        overwrite = final_config['output'].get('overwrite', True)

        # outputs of earlier runs share the input pattern
        image_paths = [p for p in sorted(glob.glob(os.path.join(folder_path, pattern)))
                       if not (suffix and os.path.splitext(p)[0].endswith(suffix))]
        if not image_paths:
            if verbose:
                print(f"No images found matching pattern '{pattern}' in {folder_path}")
            return {}

        if verbose:
            print(f"Found {len(image_paths)} images to process")

        output_folder = output_folder or folder_path

        results = {}
        for img_path in image_paths:
            filename = os.path.basename(img_path)
            out_path = os.path.join(output_folder, os.path.splitext(filename)[0] + suffix + '.hdr')
            if not overwrite and os.path.exists(out_path):
                if verbose:
                    print(f"⚠ Skipped {filename}: {out_path} exists")
                continue
            if verbose:
                print(f"\nProcessing: {filename}")

            processor = HS_denoiser(verbose=verbose)
            processor.config = copy.deepcopy(final_config)
            try:
                processor.load_image(img_path)
                processor.run()
                results[filename] = processor.save_result(out_path)
            except (MnfError, ValueError, OSError, sp.SpyException) as e:
                if verbose:
                    print(f"❌ Failed to process {filename}: {e}")

        if verbose:
            print(f"\n✓ Processed {len(results)} of {len(image_paths)} images")
        return results
