"""
plinthctl - Plinth platform command-line tool.

Drives component lifecycle operations against a platform config:
start (scan and reconcile), activate, disable and remove.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
