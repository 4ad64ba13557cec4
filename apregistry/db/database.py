import sqlite3
from contextlib import contextmanager
from apregistry.core.settings import settings

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS access_points (
    id INTEGER PRIMARY KEY AUTOINCREMENT,

    nasid                     TEXT NOT NULL UNIQUE,
    location_name             TEXT NOT NULL,
    street_address            TEXT NOT NULL,
    city                      TEXT NOT NULL,
    state                     TEXT,
    zip_code                  TEXT NOT NULL,
    country                   TEXT NOT NULL,

    latitude                  REAL NOT NULL,
    longitude                 REAL NOT NULL,

    wifi_group                TEXT NOT NULL,   -- 802.11u venue group, e.g. "ASSEMBLY"
    wifi_type_categorization  TEXT NOT NULL,   -- 802.11u venue type, e.g. "COFFEE SHOP"

    ap_make                   TEXT NOT NULL,
    ap_model                  TEXT NOT NULL,
    estimated_upload_speed    INTEGER NOT NULL,   -- Mbps
    estimated_download_speed  INTEGER NOT NULL,   -- Mbps
    isp                       TEXT NOT NULL,
    venue_type                TEXT,
    ssid                      TEXT NOT NULL,
    bssid                     TEXT,
    venue_name_alt            TEXT,
    foot_traffic_estimates    TEXT NOT NULL,

    created_at  TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at  TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);

-- Useful indexes for filters
CREATE INDEX IF NOT EXISTS idx_access_points_wifi_group  ON access_points(wifi_group);
CREATE INDEX IF NOT EXISTS idx_access_points_country     ON access_points(country);
CREATE INDEX IF NOT EXISTS idx_access_points_created_at  ON access_points(created_at);
"""

def init_db() -> None:
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)
    with sqlite3.connect(settings.db_path) as conn:
        conn.executescript(SCHEMA_SQL)
        conn.commit()

@contextmanager
def db_conn():
    conn = sqlite3.connect(settings.db_path)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()
