"""Exception and warning types raised by imagequiver.

Validation errors are raised at the setter boundary and leave the previous
state untouched. The dimension mismatch diagnostic is a warning, not an
exception: the quiver hides its quads and keeps working.
"""
from imagequiver.config import DIMENSION_WARNING_ID


class ImageQuiverError(Exception):
    """Base class for all imagequiver errors."""


class InvalidImageFormat(ImageQuiverError, ValueError):
    """Texture data is not numeric, or is neither indexed (2-D) nor RGB."""


class InvalidScaleFactor(ImageQuiverError, ValueError):
    """The auto-scale factor is not a real numeric scalar."""


class InvalidFieldData(ImageQuiverError, TypeError):
    """Position, displacement or alpha data is not numeric."""


class QuiverDeletedError(ImageQuiverError, RuntimeError):
    """The quiver (or its grouping container) has already been deleted."""


class ImageLoadError(ImageQuiverError, OSError):
    """An image could not be read or decoded."""


class ImageNotFoundError(ImageLoadError, FileNotFoundError):
    """The requested image file or URL does not exist."""


class DimensionMismatchWarning(UserWarning):
    """X, Y, U and V data do not share one shape; nothing can be rendered."""

    code = DIMENSION_WARNING_ID
