"""Ports - interfaces for pluggable components."""

from .detector import DetectorPort

__all__ = ["DetectorPort"]
