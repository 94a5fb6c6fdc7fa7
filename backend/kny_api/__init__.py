"""
KNY Moncada Foundation membership API.

Member registration and approval, events with RSVP, announcements and
donation tracking for the youth organization's single-page frontend.
"""
__version__ = "1.0.0"
