"""polydb - multi-engine database workbench core."""

from polydb.__about__ import __version__

__all__ = ["__version__"]
