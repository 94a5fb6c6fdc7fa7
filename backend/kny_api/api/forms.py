"""
Helpers for multipart form endpoints.
"""


def collect_form(**fields) -> dict:
    """Drop form fields that were not sent."""
    return {name: value for name, value in fields.items() if value is not None}
