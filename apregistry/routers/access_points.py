from __future__ import annotations
import logging
import math
import sqlite3
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from apregistry.core.schemas import AccessPointCreate, AccessPointUpdate, GeocodeRequest
from apregistry.core.security import require_admin
from apregistry.db import queries
from apregistry.services.nominatim import GeocodingError, search_address

router = APIRouter(prefix="/api/access-points", tags=["access-points"])
log = logging.getLogger(__name__)


def _integrity_error(e: sqlite3.IntegrityError) -> HTTPException:
    if "UNIQUE" in str(e):
        return HTTPException(status_code=409, detail="Access point with this NASID already exists")
    log.warning("constraint failure: %s", e)
    return HTTPException(status_code=400, detail="Invalid access point data")


@router.get("")
def list_access_points(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None, description="location name, city or SSID"),
    wifi_group: Optional[str] = Query(None),
    country: Optional[str] = Query(None),
):
    rows, total = queries.list_access_points(
        page=page, limit=limit, search=search, wifi_group=wifi_group, country=country,
    )
    return {
        "data": rows,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit),
        },
    }


@router.post("/geocode")
def geocode(body: GeocodeRequest):
    try:
        return search_address(body.address, limit=body.limit)
    except GeocodingError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{ap_id}")
def get_access_point(ap_id: int):
    ap = queries.get_access_point(ap_id)
    if ap is None:
        raise HTTPException(status_code=404, detail="Access point not found")
    return ap


@router.post("", status_code=201, dependencies=[Depends(require_admin)])
def create_access_point(body: AccessPointCreate):
    if queries.nasid_exists(body.nasid):
        raise HTTPException(status_code=409, detail="Access point with this NASID already exists")

    try:
        ap_id = queries.insert_access_point(body.model_dump())
    except sqlite3.IntegrityError as e:
        raise _integrity_error(e)

    log.info("created access point id=%s nasid=%s group=%s type=%s",
             ap_id, body.nasid, body.wifi_group, body.wifi_type_categorization)
    return {"message": "Access point created successfully", "id": ap_id}


@router.put("/{ap_id}", dependencies=[Depends(require_admin)])
def update_access_point(ap_id: int, body: AccessPointUpdate):
    fields = body.model_dump(exclude_unset=True)
    if not fields:
        raise HTTPException(status_code=400, detail="No fields to update")

    if queries.get_access_point(ap_id) is None:
        raise HTTPException(status_code=404, detail="Access point not found")

    try:
        changes = queries.update_access_point(ap_id, fields)
    except sqlite3.IntegrityError as e:
        raise _integrity_error(e)

    if changes == 0:
        raise HTTPException(status_code=404, detail="Access point not found")
    return {"message": "Access point updated successfully"}


@router.delete("/{ap_id}", dependencies=[Depends(require_admin)])
def delete_access_point(ap_id: int):
    if queries.delete_access_point(ap_id) == 0:
        raise HTTPException(status_code=404, detail="Access point not found")
    log.info("deleted access point id=%s", ap_id)
    return {"message": "Access point deleted successfully"}
