"""
lineconf - streaming reader for a line-oriented, sectioned configuration format.
"""

from .const import APP_VERSION

__version__ = APP_VERSION
