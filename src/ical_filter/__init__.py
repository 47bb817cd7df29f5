"""ical-filter: fetch a calendar feed, normalize its events to UTC, and filter them."""

__version__ = "0.2.0"
