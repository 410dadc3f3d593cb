"""
Ingestion of the combined urbanization / quality-of-life dataset.
"""

from .csv_loader import load_records, resolve_data_path

__all__ = ["load_records", "resolve_data_path"]
