# -*- coding: utf-8 -*-

"""
imagequiver/config.py

Centralizes the constants shared by the field state, the layout engine, the
image loader and the rendering backends. Keeping them here means every backend
renders quads with the same appearance and the tests can import the exact
values the engine uses.

Contents:
---------
1. QUIVER_DEFAULTS:
   - Default values for the field properties of an ImageQuiver.

2. SURFACE_STYLE:
   - Shared display attributes pushed to every quad surface on each refresh.
   - Face mode 'texture' paints the image onto the quad; edge mode 'none'
     suppresses the outline.

3. ALPHA_LIMITS:
   - Intensity range the transparency channel is mapped onto. Fixed to [0, 1]
     so the host never auto-scales the alpha data.

4. DIMENSION_WARNING_ID:
   - Stable identifier carried by the dimension mismatch warning.

5. IMAGE_LOADER:
   - Network settings used when a texture is given as an http(s) URL.

Usage:
------
    from imagequiver.config import SURFACE_STYLE, ALPHA_LIMITS
"""

QUIVER_DEFAULTS = {
    'auto_scale_factor': 1.0,   # multiplier applied to every vector magnitude
    'alpha_data': None,         # None -> derive transparency from NaN pixels
}

SURFACE_STYLE = {
    'face_mode': 'texture',
    'edge_mode': 'none',
}

ALPHA_LIMITS = (0.0, 1.0)

DIMENSION_WARNING_ID = 'ImageQuiver:DimensionWarning'

# Names of the properties owned by the field state (everything else is a
# property of the grouping container).
FIELD_PROPERTIES = (
    'alpha_data',
    'auto_scale_factor',
    'cdata',
    'udata',
    'vdata',
    'xdata',
    'ydata',
)

IMAGE_LOADER = {
    'timeout': 10.0,            # seconds, per request
    'user_agent': 'imagequiver/0.1',
    'url_schemes': ('http', 'https'),
}
