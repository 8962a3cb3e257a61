from .client import SheetsClient

__all__ = ["SheetsClient"]
