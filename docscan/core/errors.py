"""
Failure kinds raised by the scan pipeline. Each one is local to a single
image; callers running several documents catch DocScanError per image.
"""

from __future__ import annotations


class DocScanError(Exception):
    pass


class ConfigError(DocScanError, ValueError):
    """A configuration value is out of range or names an unknown option."""


class ImageLoadError(DocScanError, FileNotFoundError):
    """Input file is missing, unreadable, or decodes to an empty image."""


class NoContourFoundError(DocScanError):
    """The thresholded image holds no usable foreground region."""


class DegenerateCornersError(DocScanError):
    """The boundary polygon cannot be turned into four distinct corners."""


class SingularHomographyError(DocScanError):
    """The corner correspondences admit no valid projective transform."""


class OutputWriteError(DocScanError, OSError):
    """The rectified image could not be written."""
