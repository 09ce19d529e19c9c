"""CSV export of aggregated swap history."""

import csv
import io
from datetime import UTC, date, tzinfo
from decimal import Decimal

from swap_history.core.exceptions import ExportSerializationFailed
from swap_history.core.models import AggregatedHistory, SwapOperation

# Persisted contract for downstream consumers: do not reorder or rename
CSV_COLUMNS = [
    "day",
    "swapId",
    "status",
    "timestamp",
    "fromCurrency",
    "fromAmount",
    "toCurrency",
    "toAmount",
    "accountId",
]

DEFAULT_FILENAME_PREFIX = "swap-history"


def format_amount(amount: Decimal) -> str:
    """Plain decimal notation, never scientific (``Decimal("1E+3")`` -> ``"1000"``)."""
    return format(amount, "f")


def default_export_filename(today: date | None = None, prefix: str = DEFAULT_FILENAME_PREFIX) -> str:
    """
    Suggested file name for an export made on ``today``.

    Parameters
    ----------
    today : date | None
        Export date (default: today's local date)
    prefix : str
        File name prefix

    Returns
    -------
    str
        e.g. ``swap-history-2024.03.01.csv``

    """
    today = today or date.today()
    return f"{prefix}-{today:%Y.%m.%d}.csv"


class CsvExporter:
    """
    Converts aggregated swap history into delimited text.

    Rows follow the history's display order: most recent day first, then the
    order of operations inside each day. Quoting is RFC 4180 minimal quoting:
    fields containing the delimiter, a double quote, CR or LF are wrapped in
    double quotes, with embedded quotes doubled. Rows end with CRLF.

    Parameters
    ----------
    delimiter : str
        Single-character field delimiter
    tz : tzinfo | None
        Timezone used to render timestamps; should match the aggregator's
        day boundary (None = process local zone)

    """

    def __init__(self, delimiter: str = ",", tz: tzinfo | None = UTC) -> None:
        if len(delimiter) != 1 or delimiter in '"\r\n':
            msg = f"Invalid CSV delimiter: {delimiter!r}"
            raise ValueError(msg)
        self.delimiter = delimiter
        self.tz = tz

    def to_record(self, day: date, operation: SwapOperation) -> dict[str, str]:
        """
        Map one operation to a flat row.

        Parameters
        ----------
        day : date
            Day of the section holding the operation
        operation : SwapOperation
            Operation to map

        Returns
        -------
        dict[str, str]
            Row keyed by CSV_COLUMNS

        """
        return {
            "day": day.isoformat(),
            "swapId": operation.swap_id,
            "status": operation.status,
            "timestamp": operation.timestamp.astimezone(self.tz).isoformat(),
            "fromCurrency": operation.from_currency,
            "fromAmount": format_amount(operation.from_amount),
            "toCurrency": operation.to_currency,
            "toAmount": format_amount(operation.to_amount),
            "accountId": operation.account_id,
        }

    def to_records(self, history: AggregatedHistory) -> list[dict[str, str]]:
        """
        Map every operation of the history to a row, in display order.

        Parameters
        ----------
        history : AggregatedHistory
            History to export

        Returns
        -------
        list[dict[str, str]]
            One row per operation

        """
        return [self.to_record(section.day, operation) for section in history.sections for operation in section.data]

    def serialize(self, history: AggregatedHistory) -> str:
        """
        Render the history as delimited text with a header row.

        Parameters
        ----------
        history : AggregatedHistory
            History to export

        Returns
        -------
        str
            CSV text; identical input always gives identical output

        Raises
        ------
        ExportSerializationFailed
            If an operation cannot be formatted

        """
        buffer = io.StringIO()
        writer = csv.DictWriter(
            buffer,
            fieldnames=CSV_COLUMNS,
            delimiter=self.delimiter,
            quotechar='"',
            quoting=csv.QUOTE_MINIMAL,
            lineterminator="\r\n",
        )
        try:
            writer.writeheader()
            writer.writerows(self.to_records(history))
        except (csv.Error, TypeError, ValueError) as e:
            msg = f"Failed to serialize swap history: {e}"
            raise ExportSerializationFailed(msg) from e
        return buffer.getvalue()
