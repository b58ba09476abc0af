"""Data ingestion loaders for the indicator catalogue and submission exports."""

from .catalogue import load_catalogue_json, load_catalogue_workbook, load_default_catalogue
from .submissions import load_submissions

__all__ = [
    "load_catalogue_json",
    "load_catalogue_workbook",
    "load_default_catalogue",
    "load_submissions",
]
