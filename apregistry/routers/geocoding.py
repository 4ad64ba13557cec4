from __future__ import annotations
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from apregistry.services.nominatim import GeocodingError, reverse_geocode, search_address
from apregistry.services.vendors import lookup_mac_vendor, mac_vendor_stats
from apregistry.services.venues import get_venue_classifier

router = APIRouter(prefix="/api/geocoding", tags=["geocoding"])


@router.get("/search")
def search(q: Optional[str] = Query(None)):
    if not q:
        raise HTTPException(status_code=400, detail='Query parameter "q" is required')
    try:
        return search_address(q)
    except GeocodingError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/reverse")
def reverse(lat: Optional[float] = Query(None), lon: Optional[float] = Query(None)):
    if lat is None or lon is None:
        raise HTTPException(status_code=400, detail='Parameters "lat" and "lon" are required')
    try:
        return reverse_geocode(lat, lon)
    except GeocodingError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/mac-vendor")
def mac_vendor(mac: Optional[str] = Query(None)):
    if not mac:
        raise HTTPException(status_code=400, detail='Query parameter "mac" is required')
    return {"mac": mac, "vendor": lookup_mac_vendor(mac)}


@router.get("/mappings")
def mappings():
    return get_venue_classifier().mappings()


@router.get("/stats")
def stats():
    return {**get_venue_classifier().stats(), **mac_vendor_stats()}
