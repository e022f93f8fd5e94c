"""SQLite database schema definitions."""

SCHEMA_SQL = """
-- One weigh-in per day; re-logging a date replaces the row
CREATE TABLE IF NOT EXISTS weight_entries (
    entry_date DATE PRIMARY KEY,
    weight_kg REAL NOT NULL CHECK (weight_kg > 0),
    calories REAL CHECK (calories IS NULL OR calories > 0),
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

-- Body-fat and circumference readings; several rows may share a date
CREATE TABLE IF NOT EXISTS body_measurements (
    measurement_id INTEGER PRIMARY KEY AUTOINCREMENT,
    measured_on DATE NOT NULL,
    body_fat REAL,
    neck REAL,
    shoulders REAL,
    chest REAL,
    waist REAL,
    hips REAL,
    biceps REAL,
    forearms REAL,
    thighs REAL,
    calves REAL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_body_measurements_date ON body_measurements(measured_on);

-- Tracker settings (goals, calibration, analysis preferences) as JSON values
CREATE TABLE IF NOT EXISTS settings (
    key TEXT PRIMARY KEY,
    value_json TEXT NOT NULL,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""


def get_schema_sql() -> str:
    """Return the complete schema SQL."""
    return SCHEMA_SQL
