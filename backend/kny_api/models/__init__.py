"""
SQLAlchemy models for the KNY membership API.
"""
from kny_api.models.user import User, UserRole, MemberOrg, Committee
from kny_api.models.event import Event, EventStatus, EventRegistration, EventInterest
from kny_api.models.announcement import Announcement, AnnouncementPriority
from kny_api.models.donation import Donation, DonationStatus, DonationMethod

__all__ = [
    "User",
    "UserRole",
    "MemberOrg",
    "Committee",
    "Event",
    "EventStatus",
    "EventRegistration",
    "EventInterest",
    "Announcement",
    "AnnouncementPriority",
    "Donation",
    "DonationStatus",
    "DonationMethod",
]
