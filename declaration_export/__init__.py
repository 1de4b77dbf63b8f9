"""
Declaration Export - render a self-attested declaration to a size-bounded JPEG.

This package lays out a filled declaration record, rasterizes it at 2x,
composites it onto a fixed page surface, and searches JPEG quality until the
encoded file lands in a narrow byte window.
"""

__version__ = "1.0.0"
__author__ = "Declaration Export"
