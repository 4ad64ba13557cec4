from __future__ import annotations

import logging
import sqlite3
from typing import Optional
from apregistry.db.database import db_conn

log = logging.getLogger(__name__)

AP_COLUMNS = (
    "nasid", "location_name", "street_address", "city", "state", "zip_code", "country",
    "latitude", "longitude", "wifi_group", "wifi_type_categorization", "ap_make", "ap_model",
    "estimated_upload_speed", "estimated_download_speed", "isp", "venue_type", "ssid", "bssid",
    "venue_name_alt", "foot_traffic_estimates",
)


def nasid_exists(nasid: str) -> bool:
    with db_conn() as conn:
        row = conn.execute("SELECT id FROM access_points WHERE nasid = ?", (nasid,)).fetchone()
    return row is not None


def insert_access_point(record: dict) -> int:
    """
    Inserts a row in 'access_points' and returns the new id.
    Missing optional columns are stored as NULL. A duplicate NASID raises
    sqlite3.IntegrityError.
    """
    cols = ", ".join(AP_COLUMNS)
    marks = ", ".join("?" for _ in AP_COLUMNS)
    values = tuple(record.get(c) for c in AP_COLUMNS)

    with db_conn() as conn:
        try:
            cur = conn.execute(f"INSERT INTO access_points ({cols}) VALUES ({marks})", values)
            conn.commit()
        except sqlite3.IntegrityError:
            log.warning("Duplicate NASID rejected: %s", record.get("nasid"))
            raise
        except sqlite3.Error as e:
            log.exception("SQLite error in insert_access_point: %s", e)
            raise
        return int(cur.lastrowid)


def get_access_point(ap_id: int) -> Optional[dict]:
    with db_conn() as conn:
        row = conn.execute("SELECT * FROM access_points WHERE id = ?", (ap_id,)).fetchone()
    return dict(row) if row else None


def _filters(
    search: Optional[str],
    wifi_group: Optional[str],
    country: Optional[str],
) -> tuple[str, list]:
    where = []
    params: list = []

    if search:
        where.append("(location_name LIKE ? OR city LIKE ? OR ssid LIKE ?)")
        like = f"%{search}%"
        params += [like, like, like]

    if wifi_group:
        where.append("wifi_group = ?")
        params.append(wifi_group)

    if country:
        where.append("country = ?")
        params.append(country)

    clause = ("WHERE " + " AND ".join(where)) if where else ""
    return clause, params


def list_access_points(
    *,
    page: int = 1,
    limit: int = 10,
    search: Optional[str] = None,
    wifi_group: Optional[str] = None,
    country: Optional[str] = None,
) -> tuple[list[dict], int]:
    """Returns (page of rows, total matching rows)."""
    clause, params = _filters(search, wifi_group, country)
    offset = (page - 1) * limit

    sql = "\n".join(filter(None, [
        "SELECT * FROM access_points",
        clause,
        "ORDER BY created_at DESC, id DESC",
        "LIMIT ? OFFSET ?",
    ]))

    with db_conn() as conn:
        rows = [dict(r) for r in conn.execute(sql, params + [int(limit), int(offset)])]
        (total,) = conn.execute(f"SELECT COUNT(*) FROM access_points {clause}", params).fetchone()
    return rows, int(total)


def update_access_point(ap_id: int, fields: dict) -> int:
    """Updates the given columns (unknown keys are ignored). Returns changed rows."""
    cols = [c for c in AP_COLUMNS if c in fields]
    if not cols:
        return 0
    set_clause = ", ".join(f"{c} = ?" for c in cols)
    params = [fields[c] for c in cols] + [ap_id]

    with db_conn() as conn:
        cur = conn.execute(
            f"UPDATE access_points SET {set_clause}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
            params,
        )
        conn.commit()
        return cur.rowcount


def delete_access_point(ap_id: int) -> int:
    with db_conn() as conn:
        cur = conn.execute("DELETE FROM access_points WHERE id = ?", (ap_id,))
        conn.commit()
        return cur.rowcount
