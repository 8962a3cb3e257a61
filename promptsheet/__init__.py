"""promptsheet: manage prompt records stored in a spreadsheet."""

__version__ = "0.1.0"
