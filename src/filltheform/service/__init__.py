"""
Configuration store used by the form filling service.
"""

from .configuration import ServiceConfiguration, ReadingState, load_configuration

__all__ = ['ServiceConfiguration', 'ReadingState', 'load_configuration']
