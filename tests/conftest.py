"""Shared pytest fixtures and configuration."""

from pytest import fixture

from minibars.templates import TemplateEngine, register_site_components


@fixture
def engine():
    """Provide a template engine with the built-in helpers."""
    return TemplateEngine()


@fixture
def site_engine():
    """Provide a template engine with the site's card components registered."""
    engine = TemplateEngine()
    register_site_components(engine)
    return engine


@fixture
def meeting():
    """Provide a meeting record shaped like the site's meetings.json entries."""
    return {
        "title": "Spring <Planning> Session",
        "date": "2024-01-05",
        "time": {"doorsOpen": "6:30 PM", "meetingStart": "7:00 PM"},
        "location": {"name": "Community Hall", "building": "Room 4"},
        "presenter": {"name": "Dana Reyes", "title": "Chair"},
        "description": "Quarterly planning & review.",
        "specialNotes": ["Bring ID", "Parking is free"],
    }
