"""Agency back-office edge API."""

__version__ = "0.3.0"
