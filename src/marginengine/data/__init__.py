"""Input collaborators for the margin engine."""

from .base import MarginDataSource
from .file_data import FileMarginDataSource

__all__ = ["FileMarginDataSource", "MarginDataSource"]
