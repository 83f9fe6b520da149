"""
FillTheForm - Configuration Reader

Reads profile-grouped key/value XML configuration documents into an
in-memory configuration model.
"""

__version__ = "0.1.0"
__author__ = "FillTheForm Team"
