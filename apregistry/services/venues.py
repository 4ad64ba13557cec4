"""
OSM place tags -> 802.11u venue group / venue type.

The primary source is a reference table (``osm_class,osm_type,"GROUP - TYPE"``)
loaded once per process. Keys missing from the table go through two
hand-written fallback decision lists, one for the group and one for the type.

Note: the group and type fallbacks are authored separately and are NOT
guaranteed to agree with each other or with the table. For example an
unmatched ``tourism,motel`` falls back to group ``ASSEMBLY`` but type
``HOTEL OR MOTEL`` (a RESIDENTIAL type in the table). Existing records rely
on this behaviour, so the two lists are kept apart and not reconciled.
"""
from __future__ import annotations

import csv
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional

from apregistry.core.settings import settings

log = logging.getLogger(__name__)

LABEL_DELIMITER = " - "
UNSPECIFIED_TYPE = "UNSPECIFIED"
DEFAULT_GROUP = "UTILITY-MISC"
DEFAULT_TYPE = "UNSPECIFIED UTILITY AND MISCELLANEOUS"

# Used when the reference table cannot be read at all
FALLBACK_MAPPINGS: dict[tuple[str, str], str] = {
    ("building", "apartments"): "RESIDENTIAL - PRIVATE RESIDENCE",
    ("building", "house"): "RESIDENTIAL - PRIVATE RESIDENCE",
    ("building", "residential"): "RESIDENTIAL - PRIVATE RESIDENCE",
    ("building", "commercial"): "BUSINESS - UNSPECIFIED BUSINESS",
    ("building", "office"): "BUSINESS - PROFESSIONAL OFFICE",
    ("building", "retail"): "MERCANTILE - RETAIL STORE",
    ("building", "hotel"): "RESIDENTIAL - HOTEL OR MOTEL",
    ("building", "hospital"): "INSTITUTIONAL - HOSPITAL",
    ("building", "school"): "EDUCATIONAL - SCHOOL, PRIMARY",
    ("building", "university"): "EDUCATIONAL - UNIVERSITY OR COLLEGE",
    ("amenity", "restaurant"): "ASSEMBLY - RESTAURANT",
    ("amenity", "cafe"): "ASSEMBLY - COFFEE SHOP",
    ("amenity", "bar"): "ASSEMBLY - BAR",
    ("amenity", "bank"): "BUSINESS - BANK",
    ("amenity", "hospital"): "INSTITUTIONAL - HOSPITAL",
    ("amenity", "school"): "EDUCATIONAL - SCHOOL, PRIMARY",
    ("amenity", "university"): "EDUCATIONAL - UNIVERSITY OR COLLEGE",
    ("amenity", "fuel"): "MERCANTILE - GAS STATION",
    ("amenity", "parking"): "OUTDOOR - TRAFFIC CONTROL",
    ("shop", "supermarket"): "MERCANTILE - GROCERY MARKET",
    ("shop", "convenience"): "MERCANTILE - RETAIL STORE",
    ("shop", "mall"): "MERCANTILE - SHOPPING MALL",
    ("office", "company"): "BUSINESS - PROFESSIONAL OFFICE",
    ("office", "government"): "BUSINESS - PROFESSIONAL OFFICE",
    ("leisure", "park"): "OUTDOOR - CITY PARK",
    ("tourism", "hotel"): "RESIDENTIAL - HOTEL OR MOTEL",
}


class OsmClass(str, Enum):
    BUILDING = "building"
    AMENITY = "amenity"
    SHOP = "shop"
    OFFICE = "office"
    LEISURE = "leisure"
    HIGHWAY = "highway"
    TOURISM = "tourism"
    LANDUSE = "landuse"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Optional[str]) -> "OsmClass":
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


@dataclass(frozen=True)
class ConversionEntry:
    osm_class: str
    osm_type: str
    wifi_group: str
    wifi_type: str

    @property
    def key(self) -> tuple[str, str]:
        return (self.osm_class, self.osm_type)

    @property
    def label(self) -> str:
        return f"{self.wifi_group}{LABEL_DELIMITER}{self.wifi_type}"

    @classmethod
    def from_label(cls, osm_class: str, osm_type: str, label: str) -> "ConversionEntry":
        group, type_ = split_label(label)
        return cls(osm_class, osm_type, group, type_)


def split_label(label: str) -> tuple[str, str]:
    """'GROUP - TYPE' -> ('GROUP', 'TYPE'). Only the first delimiter splits."""
    group, _, type_ = label.partition(LABEL_DELIMITER)
    return group, (type_ or UNSPECIFIED_TYPE)


# ---------- Group fallback ----------

# Order matters: first match wins
_GROUP_BY_CLASS: tuple[tuple[OsmClass, str], ...] = (
    (OsmClass.BUILDING, "RESIDENTIAL"),
    (OsmClass.AMENITY, "ASSEMBLY"),
    (OsmClass.SHOP, "MERCANTILE"),
    (OsmClass.OFFICE, "BUSINESS"),
    (OsmClass.LEISURE, "OUTDOOR"),
    (OsmClass.HIGHWAY, "OUTDOOR"),
    (OsmClass.TOURISM, "ASSEMBLY"),
)

_LANDUSE_GROUPS: Mapping[str, str] = MappingProxyType({
    "residential": "RESIDENTIAL",
    "commercial": "BUSINESS",
    "industrial": "FACTORY-INDUSTRIAL",
})


def fallback_group(osm_class: Optional[str], osm_type: Optional[str]) -> str:
    kind = OsmClass.parse(osm_class)
    for candidate, group in _GROUP_BY_CLASS:
        if kind is candidate:
            return group
    if kind is OsmClass.LANDUSE:
        return _LANDUSE_GROUPS.get(osm_type or "", DEFAULT_GROUP)
    return DEFAULT_GROUP


# ---------- Type fallback ----------

# class -> (osm_type -> venue type, class default). A None default falls
# through to DEFAULT_TYPE.
_TYPE_RULES: Mapping[OsmClass, tuple[Mapping[str, str], Optional[str]]] = MappingProxyType({
    OsmClass.BUILDING: ({
        "residential": "PRIVATE RESIDENCE",
        "apartments": "PRIVATE RESIDENCE",
        "house": "PRIVATE RESIDENCE",
        "commercial": "UNSPECIFIED BUSINESS",
        "office": "PROFESSIONAL OFFICE",
        "retail": "RETAIL STORE",
        "hotel": "HOTEL OR MOTEL",
        "hospital": "HOSPITAL",
        "school": "SCHOOL, PRIMARY",
        "university": "UNIVERSITY OR COLLEGE",
    }, "UNSPECIFIED RESIDENTIAL"),
    OsmClass.AMENITY: ({
        "restaurant": "RESTAURANT",
        "fast_food": "RESTAURANT",
        "cafe": "COFFEE SHOP",
        "bar": "BAR",
        "pub": "BAR",
        "bank": "BANK",
        "hospital": "HOSPITAL",
        "school": "SCHOOL, PRIMARY",
        "university": "UNIVERSITY OR COLLEGE",
        "library": "LIBRARY",
        "theatre": "THEATER",
        "cinema": "THEATER",
        "fuel": "GAS STATION",
        "parking": "TRAFFIC CONTROL",
        "place_of_worship": "PLACE OF WORSHIP",
        "police": "POLICE STATION",
        "post_office": "POST OFFICE",
        "supermarket": "GROCERY MARKET",
        "marketplace": "SHOPPING MALL",
        "shopping": "SHOPPING MALL",
    }, "UNSPECIFIED ASSEMBLY"),
    OsmClass.SHOP: ({
        "supermarket": "GROCERY MARKET",
        "mall": "SHOPPING MALL",
        "department_store": "SHOPPING MALL",
        "car": "AUTOMOTIVE SERVICE STATION",
        "car_repair": "AUTOMOTIVE SERVICE STATION",
        "fuel": "GAS STATION",
    }, "RETAIL STORE"),
    OsmClass.OFFICE: ({
        "lawyer": "ATTORNEY OFFICE",
        "financial": "BANK",
    }, "PROFESSIONAL OFFICE"),
    OsmClass.LEISURE: ({
        "sports_centre": "ARENA",
        "stadium": "STADIUM",
    }, "CITY PARK"),
    OsmClass.TOURISM: ({
        "hotel": "HOTEL OR MOTEL",
        "motel": "HOTEL OR MOTEL",
        "museum": "MUSEUM",
        "attraction": "AMUSEMENT PARK",
        "theme_park": "AMUSEMENT PARK",
        "zoo": "ZOO OR AQUARIUM",
        "aquarium": "ZOO OR AQUARIUM",
    }, "UNSPECIFIED ASSEMBLY"),
    OsmClass.HIGHWAY: ({
        "bus_stop": "BUS STOP",
        "services": "REST AREA",
    }, "TRAFFIC CONTROL"),
    OsmClass.LANDUSE: ({
        "residential": "UNSPECIFIED RESIDENTIAL",
        "commercial": "UNSPECIFIED BUSINESS",
        "industrial": "UNSPECIFIED FACTORY AND INDUSTRIAL",
    }, None),
})


def fallback_type(osm_class: Optional[str], osm_type: Optional[str]) -> str:
    rule = _TYPE_RULES.get(OsmClass.parse(osm_class))
    if rule is None:
        return DEFAULT_TYPE
    by_type, class_default = rule
    return by_type.get(osm_type or "") or class_default or DEFAULT_TYPE


# ---------- Reference table ----------

def load_conversion_table(path: Path) -> tuple[dict[tuple[str, str], ConversionEntry], int]:
    """
    Read the reference table. Returns (entries keyed by (class, type), skipped rows).

    The first row is a header. Each data row is split into exactly three
    fields: class, type and the label (extra commas stay in the label).
    Rows with an empty field are skipped. Later duplicates override earlier ones.
    Raises OSError / UnicodeError / csv.Error if the file cannot be read.
    """
    entries: dict[tuple[str, str], ConversionEntry] = {}
    skipped = 0
    with open(path, newline="", encoding="utf-8") as f:
        reader = csv.reader(f)
        next(reader, None)
        for row in reader:
            if not row or not any(cell.strip() for cell in row):
                continue
            if len(row) < 3:
                skipped += 1
                continue
            osm_class = row[0].strip()
            osm_type = row[1].strip()
            label = ",".join(row[2:]).strip()
            if not (osm_class and osm_type and label):
                skipped += 1
                continue
            entry = ConversionEntry.from_label(osm_class, osm_type, label)
            entries[entry.key] = entry
    return entries, skipped


class VenueClassifier:
    """Read-only lookup table plus the fallback decision lists."""

    def __init__(
        self,
        entries: Mapping[tuple[str, str], ConversionEntry],
        *,
        source: str,
        degraded: bool = False,
        skipped_rows: int = 0,
    ):
        self._entries = MappingProxyType(dict(entries))
        self.source = source
        self.degraded = degraded
        self.skipped_rows = skipped_rows

    @classmethod
    def from_fallback(cls) -> "VenueClassifier":
        entries = {}
        for (osm_class, osm_type), label in FALLBACK_MAPPINGS.items():
            entry = ConversionEntry.from_label(osm_class, osm_type, label)
            entries[entry.key] = entry
        return cls(entries, source="fallback", degraded=True)

    @classmethod
    def from_csv(cls, path: Path) -> "VenueClassifier":
        try:
            entries, skipped = load_conversion_table(path)
        except (OSError, UnicodeError, csv.Error) as e:
            log.warning(
                "Cannot load 802.11u conversion table from %s (%s); using %d built-in mappings",
                path, e, len(FALLBACK_MAPPINGS),
            )
            return cls.from_fallback()

        if skipped:
            log.info("Skipped %d malformed rows in %s", skipped, path)
        if not entries:
            log.warning("Conversion table %s has no usable rows", path)
        log.info("Loaded %d OSM to 802.11u mappings from %s", len(entries), path)
        return cls(entries, source=str(path), skipped_rows=skipped)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key) -> bool:
        return key in self._entries

    def lookup(self, osm_class: Optional[str], osm_type: Optional[str]) -> Optional[ConversionEntry]:
        return self._entries.get((osm_class or "", osm_type or ""))

    def classify_group(self, osm_class: Optional[str], osm_type: Optional[str]) -> str:
        entry = self.lookup(osm_class, osm_type)
        if entry is not None and entry.wifi_group:
            return entry.wifi_group
        return fallback_group(osm_class, osm_type)

    def classify_type(self, osm_class: Optional[str], osm_type: Optional[str]) -> str:
        entry = self.lookup(osm_class, osm_type)
        if entry is not None:
            return entry.wifi_type
        return fallback_type(osm_class, osm_type)

    def classify(self, osm_class: Optional[str], osm_type: Optional[str]) -> tuple[str, str]:
        return self.classify_group(osm_class, osm_type), self.classify_type(osm_class, osm_type)

    def describe_place(self, place: Mapping) -> dict:
        """Venue fields for a geocoder record carrying 'class' and 'type'."""
        osm_class = place.get("class")
        osm_type = place.get("type")
        return {
            "wifi_group": self.classify_group(osm_class, osm_type),
            "wifi_type": self.classify_type(osm_class, osm_type),
        }

    def mappings(self) -> dict[str, str]:
        return {f"{c},{t}": entry.label for (c, t), entry in self._entries.items()}

    def stats(self) -> dict:
        return {
            "total_mappings": len(self._entries),
            "source": self.source,
            "degraded": self.degraded,
            "skipped_rows": self.skipped_rows,
        }


_classifier: Optional[VenueClassifier] = None
_classifier_lock = threading.Lock()


def get_venue_classifier() -> VenueClassifier:
    global _classifier
    if _classifier is None:
        with _classifier_lock:
            if _classifier is None:
                _classifier = VenueClassifier.from_csv(settings.conversion_table_csv)
    return _classifier


def reset_venue_classifier() -> None:
    """Drop the process-wide classifier so the next call reloads the table."""
    global _classifier
    with _classifier_lock:
        _classifier = None
