"""
AP vendor from a MAC address.

Registry vendor strings (IEEE OUI records) are collapsed into a small set of
canonical AP makes: exact match first, then ordered keyword rules.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Optional

from apregistry.core.settings import settings
from apregistry.services.http_client import UpstreamError, http_get

log = logging.getLogger(__name__)

UNKNOWN_VENDOR = "UNKNOWN"
ALTA_LABS = "Alta Labs"
# OUI blocks not reliably listed in public registries
ALTA_LABS_PREFIXES = ("B2", "B6")


@dataclass(frozen=True)
class VendorEntry:
    raw_name: str
    canonical_name: str


VENDOR_ENTRIES: tuple[VendorEntry, ...] = (
    VendorEntry("Ubiquiti Inc", "Ubiquiti"),
    VendorEntry("Cisco Meraki", "Meraki"),
    VendorEntry("Edgecore Networks Corporation", "EdgeCore"),
    VendorEntry("Nova Labs", "Helium"),
    VendorEntry("GL Technologies (Hong Kong) Limited", "OpenWRT"),
    VendorEntry("Cambium Networks Limited", "Cambium"),
    VendorEntry("Ruckus Wireless", "Ruckus"),
    VendorEntry("Cisco Systems, Inc", "Cisco / Meraki"),
    VendorEntry("Helium Systems, Inc", "Helium"),
    VendorEntry("Juniper Networks", "Juniper"),
    VendorEntry("TP-Link Systems Inc", "TP-Link"),
    VendorEntry("TP-LINK TECHNOLOGIES CO.,LTD.", "TP-Link"),
    VendorEntry("Shenzhen Four Seas Global Link Network Technology Co., Ltd.", "Wayru"),
    VendorEntry("Belkin International Inc.", "Belkin"),
    VendorEntry("Routerboard.com", "Mikrotik"),
)

# (lower-case keywords, canonical name); first matching rule wins
KEYWORD_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("ubiquiti",), "Ubiquiti"),
    (("cisco", "meraki"), "Meraki"),
    (("ruckus",), "Ruckus"),
    (("juniper",), "Juniper"),
    (("cambium",), "Cambium"),
    (("helium", "nova labs"), "Helium"),
    (("edgecore",), "EdgeCore"),
    (("gl technologies", "openwrt"), "OpenWRT"),
    (("alta labs",), ALTA_LABS),
    (("wayru", "shenzhen four seas"), "Wayru"),
    (("tp-link",), "TP-Link"),
    (("belkin",), "Belkin"),
    (("routerboard", "mikrotik"), "Mikrotik"),
)


class MacVendorNormalizer:
    def __init__(self, entries: Iterable[VendorEntry] = VENDOR_ENTRIES):
        # case-sensitive exact names; later duplicates win
        self._table = MappingProxyType({e.raw_name: e.canonical_name for e in entries})

    def __len__(self) -> int:
        return len(self._table)

    def normalize(self, raw_vendor: Optional[str]) -> str:
        if not raw_vendor or raw_vendor == UNKNOWN_VENDOR:
            return UNKNOWN_VENDOR

        mapped = self._table.get(raw_vendor)
        if mapped:
            return mapped

        lower = raw_vendor.lower()
        for keywords, canonical in KEYWORD_RULES:
            if any(k in lower for k in keywords):
                return canonical
        return UNKNOWN_VENDOR

    @staticmethod
    def oui_special_case(oui: Optional[str]) -> Optional[str]:
        """Vendor known from the OUI prefix alone, without a registry lookup."""
        if oui and oui.upper().startswith(ALTA_LABS_PREFIXES):
            return ALTA_LABS
        return None


_normalizer = MacVendorNormalizer()


def get_mac_vendor_normalizer() -> MacVendorNormalizer:
    return _normalizer


def normalize_vendor(raw_vendor: Optional[str]) -> str:
    return _normalizer.normalize(raw_vendor)


def mac_vendor_stats() -> dict:
    return {"mac_vendor_mappings": len(_normalizer)}


def clean_mac(mac: Optional[str]) -> str:
    return "".join(c for c in (mac or "") if c in "0123456789abcdefABCDEF")


def oui_from_mac(mac: Optional[str]) -> Optional[str]:
    """'b6:aa:bb:cc:dd:ee' -> 'B6AABB'"""
    cleaned = clean_mac(mac)
    if len(cleaned) < 6:
        return None
    return cleaned[:6].upper()


def lookup_mac_vendor(mac: Optional[str]) -> str:
    """Canonical vendor for a MAC/NASID. Upstream failures resolve to UNKNOWN."""
    oui = oui_from_mac(mac)
    if oui is None:
        return UNKNOWN_VENDOR

    special = _normalizer.oui_special_case(oui)
    if special:
        return special

    url = f"{settings.mac_vendor_url.rstrip('/')}/{oui}"
    try:
        r = http_get(url, timeout=settings.mac_vendor_timeout, retries=1)
    except UpstreamError as e:
        log.warning("MAC vendor lookup failed for %s: %s", oui, e)
        return UNKNOWN_VENDOR

    vendor = _normalizer.normalize(r.text.strip())
    log.info("MAC vendor: oui=%s vendor=%s", oui, vendor)
    return vendor
