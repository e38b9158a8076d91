"""
PixelKit - pixel kernels for colour filters, convolutions, resampling,
affine warping and 3D projection, with a FastAPI service around them.
"""

__version__ = "1.0.0"
