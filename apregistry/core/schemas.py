from __future__ import annotations
from typing import Annotated, Literal, Optional

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, Field, StringConstraints, model_validator

# 802.11u venue groups emitted by the classifier
VENUE_GROUPS_80211U = (
    "UNSPECIFIED", "ASSEMBLY", "BUSINESS", "EDUCATIONAL", "FACTORY-INDUSTRIAL",
    "INSTITUTIONAL", "MERCANTILE", "RESIDENTIAL", "STORAGE", "UTILITY-MISC",
    "VEHICULAR", "OUTDOOR",
)
# Groups offered by older versions of the registration form
LEGACY_VENUE_GROUPS = (
    "HOSPITALITY", "HEALTHCARE", "TRANSPORTATION", "GOVERNMENT",
    "INDUSTRIAL", "ENTERTAINMENT", "RELIGIOUS", "OTHER",
)
VENUE_GROUPS = frozenset(VENUE_GROUPS_80211U + LEGACY_VENUE_GROUPS)

MAC_PATTERN = r"^([0-9A-Fa-f]{2}[:-]){5}([0-9A-Fa-f]{2})$"
# columns that may be cleared with an explicit null
NULLABLE_COLUMNS = frozenset({"state", "venue_type", "bssid", "venue_name_alt"})


def _check_group(value: str) -> str:
    if value not in VENUE_GROUPS:
        raise ValueError(f"wifi_group must be one of {sorted(VENUE_GROUPS)}")
    return value


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


NasId = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, pattern=r"^[a-fA-F0-9:]+$")]
Text20 = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=20)]
Text100 = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
Text255 = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]
State = Annotated[str, StringConstraints(strip_whitespace=True, max_length=100)]
VenueGroup = Annotated[str, StringConstraints(strip_whitespace=True, to_upper=True), AfterValidator(_check_group)]
Speed = Annotated[int, Field(ge=1, le=10000)]
Latitude = Annotated[float, Field(ge=-90, le=90)]
Longitude = Annotated[float, Field(ge=-180, le=180)]
FootTraffic = Literal["Low", "Medium", "High", "Very High"]

# "" and null both mean "not set"
Bssid = Annotated[
    Optional[Annotated[str, StringConstraints(strip_whitespace=True, pattern=MAC_PATTERN)]],
    BeforeValidator(_blank_to_none),
]
OptText100 = Annotated[
    Optional[Annotated[str, StringConstraints(strip_whitespace=True, max_length=100)]],
    BeforeValidator(_blank_to_none),
]
OptText255 = Annotated[
    Optional[Annotated[str, StringConstraints(strip_whitespace=True, max_length=255)]],
    BeforeValidator(_blank_to_none),
]


class AccessPointCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    nasid: NasId
    location_name: Text255
    street_address: Text255
    city: Text100
    state: State = ""
    zip_code: Text20
    country: Text100
    latitude: Latitude
    longitude: Longitude
    wifi_group: VenueGroup
    wifi_type_categorization: Text100
    ap_make: Text100
    ap_model: Text100
    estimated_upload_speed: Speed
    estimated_download_speed: Speed
    isp: Text100
    venue_type: OptText100 = None
    ssid: Text255
    bssid: Bssid = None
    venue_name_alt: OptText255 = None
    foot_traffic_estimates: FootTraffic


class AccessPointUpdate(BaseModel):
    """Partial update: only the fields sent are validated and written."""
    model_config = ConfigDict(extra="forbid")

    nasid: Optional[NasId] = None
    location_name: Optional[Text255] = None
    street_address: Optional[Text255] = None
    city: Optional[Text100] = None
    state: Optional[State] = None
    zip_code: Optional[Text20] = None
    country: Optional[Text100] = None
    latitude: Optional[Latitude] = None
    longitude: Optional[Longitude] = None
    wifi_group: Optional[VenueGroup] = None
    wifi_type_categorization: Optional[Text100] = None
    ap_make: Optional[Text100] = None
    ap_model: Optional[Text100] = None
    estimated_upload_speed: Optional[Speed] = None
    estimated_download_speed: Optional[Speed] = None
    isp: Optional[Text100] = None
    venue_type: OptText100 = None
    ssid: Optional[Text255] = None
    bssid: Bssid = None
    venue_name_alt: OptText255 = None
    foot_traffic_estimates: Optional[FootTraffic] = None

    @model_validator(mode="after")
    def no_null_on_required(self):
        nulled = sorted(
            f for f in self.model_fields_set
            if getattr(self, f) is None and f not in NULLABLE_COLUMNS
        )
        if nulled:
            raise ValueError(f"fields cannot be null: {', '.join(nulled)}")
        return self


class GeocodeRequest(BaseModel):
    address: Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=500)]
    limit: Annotated[int, Field(ge=1, le=50)] = 5
