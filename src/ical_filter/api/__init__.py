"""HTTP API for ical-filter: app factory, dependencies, routers and models."""
