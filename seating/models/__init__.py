"""Value types for tables and customer groups."""

from .group import Group
from .table import Table

__all__ = ["Group", "Table"]
