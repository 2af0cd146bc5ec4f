"""Exceptions raised by the county grid pipeline."""

from typing import Optional

import requests


class ClimateGridsError(Exception):
    """Base class for pipeline errors."""


class GridDownloadError(ClimateGridsError):
    """Raised when a yearly grid cannot be fetched or decompressed."""

    def __init__(self, message: str, url: Optional[str] = None,
                 response: Optional[requests.Response] = None):
        """Initialize the error.

        Args:
            message: Error message
            url: URL that was being fetched
            response: Optional response object that caused the error
        """
        self.message = message
        self.url = url
        self.response = response
        super().__init__(self.message)


class GridFormatError(ClimateGridsError, ValueError):
    """Raised when yearly grids cannot be combined into one stack."""
