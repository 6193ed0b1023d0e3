# capture/__init__.py
"""Capture package: camera/null transports, nonblocking adapter, and the frame sampler."""

from .nonblocking_adapter import wrap_nonblocking
from .reader import CameraTransport, NullTransport, ReaderConfig, ReaderFactory
from .sampler import FrameSampler, FrameUnavailable, downscale

__all__ = [
    "ReaderFactory",
    "ReaderConfig",
    "CameraTransport",
    "NullTransport",
    "wrap_nonblocking",
    "FrameSampler",
    "FrameUnavailable",
    "downscale",
]

__version__ = "0.1.0"
