"""Report writers."""

from sharpcap.reporting.csv_output import write_passes_csv, write_picks_csv, write_rows_csv

__all__ = ["write_passes_csv", "write_picks_csv", "write_rows_csv"]
