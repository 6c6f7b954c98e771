"""SignFrames: timed still capture and ZIP export for sign-language datasets."""

__version__ = '1.0.0'
