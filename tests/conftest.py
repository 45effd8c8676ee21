# tests/conftest.py
import os, tempfile
import pytest

# point the app at a throwaway SQLite file before app.core.config is imported
_DB_DIR = tempfile.mkdtemp(prefix="ratecard-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_DB_DIR, 'test.db')}"


@pytest.fixture
def tariff_record():
    """A fully populated plan, keyed the way stored pricing plans are."""
    return {
        "_id": "plan-1",
        "name": "Standard corporate",
        "status": "approved",
        "doxPricing": {
            "01gm-250gm":  {"assam": 30, "neBySurface": 45, "neByAirAgtImp": 60, "restOfIndia": 70},
            "251gm-500gm": {"assam": 50, "neBySurface": 65, "neByAirAgtImp": 80, "restOfIndia": 95},
            "add500gm":    {"assam": 20, "neBySurface": 30, "neByAirAgtImp": 40, "restOfIndia": 45},
        },
        "nonDoxSurfacePricing": {"assam": 40, "neBySurface": 55, "neByAirAgtImp": 65, "restOfIndia": 80},
        "nonDoxAirPricing":     {"assam": 90, "neBySurface": 110, "neByAirAgtImp": 125, "restOfIndia": 150},
        "priorityPricing": {
            "01gm-500gm": {"assam": 100, "neBySurface": 120, "neByAirAgtImp": 140, "restOfIndia": 160},
            "add500gm":   {"assam": 35, "neBySurface": 45, "neByAirAgtImp": 55, "restOfIndia": 60},
        },
        "reversePricing": {
            "toAssam": {
                "byRoad":   {"normal": 8, "priority": 10},
                "byTrain":  {"normal": 12, "priority": 14},
                "byFlight": {"normal": 60, "priority": 75},
            },
            "toNorthEast": {
                "byRoad":   {"normal": 9, "priority": 11},
                "byTrain":  {"normal": 13, "priority": 15},
                "byFlight": {"normal": 70, "priority": 85},
            },
        },
        "createdAt": "2024-01-10T10:00:00Z",
    }
