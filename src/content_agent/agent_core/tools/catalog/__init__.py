from .base import ToolCatalog

__all__ = ["ToolCatalog"]
