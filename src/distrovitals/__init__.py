"""DistroVitals - Linux distribution health tracker."""

__version__ = "0.1.0"
