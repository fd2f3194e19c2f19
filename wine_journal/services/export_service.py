"""CSV export of a user's wines and tastings."""

import csv
import io
from typing import Any

from sqlalchemy.orm import Session

from wine_journal.db.repositories import TastingRepository, WineRepository

WINE_COLUMNS = [
    "id",
    "name",
    "producer",
    "country",
    "region",
    "vintage",
    "type",
    "rating",
    "price",
    "grapes",
]

TASTING_COLUMNS = [
    "id",
    "wine",
    "date",
    "rating",
    "appearance",
    "nose",
    "palate",
    "conclusion",
]


def build_csv(rows: list[dict[str, Any]], columns: list[str] | None = None) -> str:
    """
    Render rows as CSV with a header line.

    Args:
        rows: One dict per row; None values become empty cells.
        columns: Column order; defaults to the keys of the first row.

    Returns:
        CSV string.
    """
    if columns is None:
        columns = list(rows[0].keys()) if rows else []

    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=columns, extrasaction="ignore", lineterminator="\n")
    writer.writeheader()
    for row in rows:
        writer.writerow({key: "" if row.get(key) is None else row[key] for key in columns})
    return output.getvalue()


class ExportService:
    """Service for exporting one user's journal."""

    def __init__(self, session: Session, user_id: str):
        self.wine_repo = WineRepository(session, user_id)
        self.tasting_repo = TastingRepository(session, user_id)

    def export_wines_csv(self) -> str:
        """Export all of the user's wines as CSV."""
        rows = [
            {
                "id": str(wine.id),
                "name": wine.name,
                "producer": wine.producer,
                "country": wine.country,
                "region": wine.region,
                "vintage": wine.vintage,
                "type": wine.wine_type.value,
                "rating": wine.rating,
                "price": wine.price,
                "grapes": ", ".join(wine.grapes),
            }
            for wine in self.wine_repo.list_for_user(limit=None)
        ]
        return build_csv(rows, WINE_COLUMNS)

    def export_tastings_csv(self) -> str:
        """Export all of the user's tastings as CSV, naming the wine tasted."""
        wine_names = {wine.id: wine.name for wine in self.wine_repo.list_for_user(limit=None)}
        rows = [
            {
                "id": str(tasting.id),
                "wine": wine_names.get(tasting.wine_id, ""),
                "date": tasting.tasted_on.isoformat(),
                "rating": tasting.rating,
                "appearance": tasting.appearance,
                "nose": tasting.nose,
                "palate": tasting.palate,
                "conclusion": tasting.conclusion,
            }
            for tasting in self.tasting_repo.list_for_user()
        ]
        return build_csv(rows, TASTING_COLUMNS)

    def export_multipart(self, boundary: str) -> str:
        """
        Bundle both CSV files into a single multipart/mixed body.

        Args:
            boundary: The multipart boundary; must not occur in the CSV data.

        Returns:
            The body for a ``multipart/mixed; boundary=...`` response.
        """
        parts = [
            ("wines.csv", self.export_wines_csv()),
            ("tastings.csv", self.export_tastings_csv()),
        ]
        body = ""
        for filename, content in parts:
            body += (
                f"--{boundary}\r\n"
                "Content-Type: text/csv\r\n"
                f'Content-Disposition: attachment; filename="{filename}"\r\n\r\n'
                f"{content}\r\n"
            )
        return body + f"--{boundary}--"
