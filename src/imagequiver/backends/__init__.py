"""Rendering backends.

`PyQtGraphBackend` lives in `imagequiver.backends.qt` and needs the ``qt``
extra; it is not imported here.
"""
from imagequiver.backends.base import RenderBackend
from imagequiver.backends.memory import MemoryBackend
from imagequiver.backends.mpl import MatplotlibBackend

__all__ = ['MatplotlibBackend', 'MemoryBackend', 'RenderBackend']
