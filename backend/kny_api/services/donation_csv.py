"""
CSV export and import for donations.

Export writes a fixed column order. Import accepts either those header names
or the camelCase field names, case-insensitively, and validates every row
before anything is inserted.
"""
import csv
import io
from typing import Iterable, Optional

from pydantic import ValidationError

from kny_api.core.exceptions import ValidationFailedError, format_error_details
from kny_api.models.base import utcnow
from kny_api.models.donation import Donation, DonationMethod, DonationStatus
from kny_api.schemas.donation import DonationCreate

CSV_COLUMNS = [
    ("Donor Name", "donor_name"),
    ("Amount", "amount"),
    ("Method", "method"),
    ("Status", "status"),
    ("Date", "date"),
    ("Reference Number", "reference_number"),
    ("Notes", "notes"),
]


def _normalize_header(name: str) -> str:
    return "".join(ch for ch in name.strip().lower() if ch.isalnum())


HEADER_TO_FIELD = {}
for _header, _field in CSV_COLUMNS:
    HEADER_TO_FIELD[_normalize_header(_header)] = _field
    HEADER_TO_FIELD[_normalize_header(_field)] = _field


def _match_choice(value: str, choices) -> str:
    """Return the canonical enum value for a case-insensitive match, else the input."""
    for choice in choices:
        if choice.value.lower() == value.lower():
            return choice.value
    return value


def donations_to_csv(donations: Iterable[Donation]) -> str:
    """Serialize donations to CSV text with a header row."""
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow([header for header, _ in CSV_COLUMNS])
    for d in donations:
        writer.writerow([
            d.donor_name,
            f"{d.amount:.2f}",
            d.method.value,
            d.status.value,
            d.date.isoformat() if d.date else "",
            d.reference_number or "",
            d.notes or "",
        ])
    return buffer.getvalue()


def parse_donations_csv(content: bytes, created_by_id: Optional[str] = None) -> list[Donation]:
    """
    Parse uploaded CSV bytes into unsaved Donation objects.

    Status defaults to Completed and date to now. The first invalid row
    aborts the whole import with a ValidationFailedError naming the row,
    counted the way a spreadsheet numbers it (header is row 1).
    """
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise ValidationFailedError("CSV file must be UTF-8 encoded")

    if not text.strip():
        raise ValidationFailedError("CSV file is empty")

    reader = csv.DictReader(io.StringIO(text))
    if not reader.fieldnames:
        raise ValidationFailedError("CSV file is empty")

    columns = {name: HEADER_TO_FIELD.get(_normalize_header(name)) for name in reader.fieldnames if name}

    donations = []
    for row_number, row in enumerate(reader, start=2):
        data = {}
        for header, field in columns.items():
            if field is None:
                continue
            value = (row.get(header) or "").strip()
            if value:
                data[field] = value

        if not data:
            continue  # blank line

        if "method" in data:
            data["method"] = _match_choice(data["method"], DonationMethod)
        if "status" in data:
            data["status"] = _match_choice(data["status"], DonationStatus)

        try:
            parsed = DonationCreate.model_validate(data)
        except ValidationError as e:
            raise ValidationFailedError(f"Row {row_number}: {format_error_details(e.errors())}")

        donations.append(Donation(
            donor_name=parsed.donor_name,
            amount=parsed.amount,
            method=parsed.method,
            status=parsed.status,
            date=parsed.date or utcnow(),
            reference_number=parsed.reference_number,
            notes=parsed.notes,
            created_by_id=created_by_id,
        ))

    if not donations:
        raise ValidationFailedError("CSV file contains no donation rows")

    return donations
