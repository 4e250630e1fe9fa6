import os
import numpy as np
import spectral as sp

from .exceptions import ConfigurationError


class ImageSubset:
    """
    Spatial subregion of an image, end-exclusive.

    Parameters:
    -----------
    start_samp, end_samp : int, optional
        Sample (column) range. None means the image border.
    start_line, end_line : int, optional
        Line (row) range. None means the image border.
    """

    def __init__(self, start_samp=None, end_samp=None, start_line=None, end_line=None):
        self.start_samp = start_samp
        self.end_samp = end_samp
        self.start_line = start_line
        self.end_line = end_line

    @classmethod
    def from_config(cls, config):
        """Create a subset from a config section, or None if the section selects everything."""
        if not config or all(config.get(key) is None for key in ('start_samp', 'end_samp', 'start_line', 'end_line')):
            return None
        return cls(config.get('start_samp'), config.get('end_samp'),
                   config.get('start_line'), config.get('end_line'))

    def resolve(self, lines, samples):
        """
        Return ((start_line, end_line), (start_samp, end_samp)) clipped to the image.
        """
        start_line = 0 if self.start_line is None else int(self.start_line)
        end_line = lines if self.end_line is None else min(int(self.end_line), lines)
        start_samp = 0 if self.start_samp is None else int(self.start_samp)
        end_samp = samples if self.end_samp is None else min(int(self.end_samp), samples)

        if start_line < 0 or start_line >= end_line:
            raise ConfigurationError(f"Invalid line range: {start_line}-{end_line} (image has {lines} lines)",
                                     stage="subset")
        if start_samp < 0 or start_samp >= end_samp:
            raise ConfigurationError(f"Invalid sample range: {start_samp}-{end_samp} (image has {samples} samples)",
                                     stage="subset")
        return (start_line, end_line), (start_samp, end_samp)

    def to_dict(self):
        return {
            'start_samp': self.start_samp,
            'end_samp': self.end_samp,
            'start_line': self.start_line,
            'end_line': self.end_line,
        }

    def __repr__(self):
        return (f"ImageSubset(lines={self.start_line}:{self.end_line}, "
                f"samples={self.start_samp}:{self.end_samp})")


# ENVI header keys that are rewritten by spectral when saving
_GEOMETRY_KEYS = ('lines', 'samples', 'bands', 'data type', 'header offset',
                  'byte order', 'interleave', 'file type')


class HS_image:
    """
    Hyperspectral image read through an ENVI header.

    The image is held as a float32 buffer of shape (lines, samples, bands),
    which is the layout the MNF engine transforms in place.
    """

    def __init__(self, data_path=None, subset=None):
        self.data_path = data_path
        self.img = None
        self.meta = {}
        self.wavelengths = []
        self.offset = 0
        self.datatype = 4
        self.name = None
        self.lines = self.samples = self.bands = 0
        if data_path is not None:
            self.read_hdr(data_path, subset=subset)

    def read_hdr(self, data_path, subset=None):
        hdr = sp.open_image(data_path)

        self.meta = hdr.metadata
        self.offset = int(getattr(hdr, 'offset', 0))
        self.datatype = int(self.meta.get('data type', 4))
        self.wavelengths = self._parse_wavelengths(self.meta.get('wavelength'))
        self.name = os.path.basename(data_path)

        if subset is None:
            img = hdr.load()
        else:
            line_bounds, samp_bounds = subset.resolve(hdr.nrows, hdr.ncols)
            img = hdr.read_subregion(line_bounds, samp_bounds)

        self.img = np.ascontiguousarray(img, dtype=np.float32)
        if self.img.ndim == 2:
            self.img = self.img[:, :, np.newaxis]
        self.lines, self.samples, self.bands = self.img.shape

    @staticmethod
    def _parse_wavelengths(values):
        if values is None:
            return []
        # ENVI wavelength lists often end with an empty entry
        return [float(x) for x in values if str(x).strip() != '']

    @classmethod
    def from_array(cls, img, wavelengths=None, name='array'):
        """Wrap an in-memory (lines, samples, bands) cube."""
        image = cls()
        image.img = np.array(img, dtype=np.float32, order='C')
        if image.img.ndim != 3:
            raise ValueError(f"Expected a 3D cube (lines, samples, bands), got shape {image.img.shape}")
        image.lines, image.samples, image.bands = image.img.shape
        image.wavelengths = [float(w) for w in wavelengths] if wavelengths is not None else []
        image.name = name
        return image

    def __str__(self):
        return str(self.name)

    def save(self, hdr_path, description=None):
        """
        Write the buffer as a float32 ENVI image (BIL interleave).

        Wavelengths and non-geometry metadata of the source header are kept.
        """
        meta = {k: v for k, v in self.meta.items() if k not in _GEOMETRY_KEYS}
        if self.wavelengths and len(self.wavelengths) == self.bands:
            meta['wavelength'] = [str(w) for w in self.wavelengths]
        if description is not None:
            meta['description'] = description

        directory = os.path.dirname(hdr_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        sp.envi.save_image(hdr_path, self.img, dtype=np.float32, metadata=meta,
                           interleave='bil', force=True)
        return hdr_path
