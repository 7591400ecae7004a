"""Vidvault: account management and video upload/status tracking API."""

__version__ = "0.1.0"
