"""
Unit tests for the donation CSV serializer and parser.
"""
from datetime import datetime
from decimal import Decimal

import pytest

from kny_api.core.exceptions import ValidationFailedError
from kny_api.models.donation import Donation, DonationMethod, DonationStatus
from kny_api.services.donation_csv import donations_to_csv, parse_donations_csv


def test_serialize_header_and_row():
    donation = Donation(
        donor_name="Maria, Clara",
        amount=Decimal("1250.5"),
        method=DonationMethod.GCASH,
        status=DonationStatus.REFUNDED,
        date=datetime(2024, 5, 1, 9, 30),
        reference_number=None,
        notes='Said "salamat"',
    )
    lines = donations_to_csv([donation]).splitlines()
    assert lines[0] == "Donor Name,Amount,Method,Status,Date,Reference Number,Notes"
    assert lines[1] == '"Maria, Clara",1250.50,G-Cash,Refunded,2024-05-01T09:30:00,,"Said ""salamat"""'


def test_serialize_empty():
    assert donations_to_csv([]).strip() == "Donor Name,Amount,Method,Status,Date,Reference Number,Notes"


def test_parse_display_headers():
    content = (
        "Donor Name,Amount,Method,Status,Date,Reference Number,Notes\n"
        "Jose Rizal,300.00,G-Cash,Completed,2024-03-15T08:15:00,GC-7788,\n"
    ).encode()
    [donation] = parse_donations_csv(content, created_by_id="admin123456789")
    assert donation.donor_name == "Jose Rizal"
    assert donation.amount == Decimal("300.00")
    assert donation.method == DonationMethod.GCASH
    assert donation.status == DonationStatus.COMPLETED
    assert donation.date == datetime(2024, 3, 15, 8, 15)
    assert donation.reference_number == "GC-7788"
    assert donation.notes is None
    assert donation.created_by_id == "admin123456789"


def test_parse_mixed_header_styles_and_bom():
    content = "\ufeffdonor_name,AMOUNT,referenceNumber,method\nAna,10,R-1,g-cash\n".encode("utf-8")
    [donation] = parse_donations_csv(content)
    assert donation.donor_name == "Ana"
    assert donation.reference_number == "R-1"
    assert donation.method == DonationMethod.GCASH


def test_parse_defaults_status_and_date():
    [donation] = parse_donations_csv(b"Donor Name,Amount,Method\nAna,10,Cash\n")
    assert donation.status == DonationStatus.COMPLETED
    assert donation.date is not None


def test_parse_skips_blank_lines_and_unknown_columns():
    content = b"Donor Name,Amount,Method,Receipt Printed\nAna,10,Cash,yes\n,,,\nBen,20,Cash,no\n"
    donations = parse_donations_csv(content)
    assert [d.donor_name for d in donations] == ["Ana", "Ben"]


@pytest.mark.parametrize("content,message", [
    (b"", "CSV file is empty"),
    (b"   \n", "CSV file is empty"),
    (b"Donor Name,Amount,Method\n", "CSV file contains no donation rows"),
    (b"\xff\xfe\x00bad", "CSV file must be UTF-8 encoded"),
])
def test_parse_rejects_empty_or_undecodable(content, message):
    with pytest.raises(ValidationFailedError) as exc_info:
        parse_donations_csv(content)
    assert exc_info.value.message == message


@pytest.mark.parametrize("row", [
    "Ana,-5,Cash",
    "Ana,10,Cheque",
    ",10,Cash",
    "Ana,lots,Cash",
])
def test_parse_reports_first_bad_row(row):
    content = f"Donor Name,Amount,Method\nGood,1,Cash\n{row}\n".encode()
    with pytest.raises(ValidationFailedError) as exc_info:
        parse_donations_csv(content)
    assert exc_info.value.message.startswith("Row 3:")
