"""Interactive image resize/convert client with a live remote preview."""

__version__ = "0.1.0"
