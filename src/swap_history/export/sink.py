"""File sink for exported swap history."""

import logging
from pathlib import Path

from swap_history.core.exceptions import ExportWriteFailed
from swap_history.core.models import AggregatedHistory
from swap_history.export.csv_exporter import CsvExporter

logger = logging.getLogger(__name__)


def write_export(path: Path | str, text: str) -> Path:
    """
    Write serialized export text to a file as UTF-8.

    Parameters
    ----------
    path : Path | str
        Destination file; missing parent directories are created
    text : str
        Serialized export

    Returns
    -------
    Path
        The written file

    Raises
    ------
    ExportWriteFailed
        If the file cannot be written

    """
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(text)
    except OSError as e:
        raise ExportWriteFailed(path, e) from e

    logger.info("Exported swap history to %s", path)
    return path


def export_history(history: AggregatedHistory, path: Path | str, exporter: CsvExporter | None = None) -> Path:
    """
    Serialize a history snapshot and write it to ``path``.

    The history value is immutable, so a refresh running at the same time
    cannot change what gets written.

    Parameters
    ----------
    history : AggregatedHistory
        Snapshot to export
    path : Path | str
        Destination file
    exporter : CsvExporter | None
        Exporter to use (default: comma-delimited, UTC timestamps)

    Returns
    -------
    Path
        The written file

    """
    exporter = exporter or CsvExporter()
    return write_export(path, exporter.serialize(history))
