"""Export of aggregated swap history to delimited text files."""

from swap_history.export.csv_exporter import CSV_COLUMNS, CsvExporter, default_export_filename, format_amount
from swap_history.export.sink import export_history, write_export

__all__ = [
    "CSV_COLUMNS",
    "CsvExporter",
    "default_export_filename",
    "export_history",
    "format_amount",
    "write_export",
]
