"""
imagequiver

Quiver plots that draw an image in place of each arrow. The quads are
positioned, rotated and sized from a 2-D vector field and kept in step with
the field as it changes.

    from imagequiver import ImageQuiver
    from imagequiver.backends import MemoryBackend

    q = ImageQuiver(img, x, y, u, v, backend=MemoryBackend())
"""
from imagequiver.errors import (
    DimensionMismatchWarning,
    ImageLoadError,
    ImageNotFoundError,
    ImageQuiverError,
    InvalidFieldData,
    InvalidImageFormat,
    InvalidScaleFactor,
    QuiverDeletedError,
)
from imagequiver.field_state import FieldState
from imagequiver.layout import QuadLayoutEngine
from imagequiver.quiver import ImageQuiver

__version__ = '0.1.0'

__all__ = [
    'DimensionMismatchWarning',
    'FieldState',
    'ImageLoadError',
    'ImageNotFoundError',
    'ImageQuiver',
    'ImageQuiverError',
    'InvalidFieldData',
    'InvalidImageFormat',
    'InvalidScaleFactor',
    'QuadLayoutEngine',
    'QuiverDeletedError',
]
