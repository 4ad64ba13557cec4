import pytest

from apregistry.core.settings import settings
from apregistry.services import venues


@pytest.fixture
def write_table(tmp_path):
    """Writes a conversion table with the given data lines (header added)."""
    def _write(*lines, header="osm_class,osm_type,wifi_80211u"):
        path = tmp_path / "conversion.csv"
        path.write_text("\n".join([header, *lines]) + "\n", encoding="utf-8")
        return path
    return _write


@pytest.fixture
def packaged_classifier():
    return venues.VenueClassifier.from_csv(settings.conversion_table_csv)


@pytest.fixture
def fallback_classifier(tmp_path):
    return venues.VenueClassifier.from_csv(tmp_path / "missing.csv")


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    path = tmp_path / "registry.db"
    monkeypatch.setattr(settings, "db_path", path)
    return path


@pytest.fixture
def no_sleep(monkeypatch):
    import apregistry.services.http_client as http_client
    monkeypatch.setattr(http_client.time, "sleep", lambda s: None)


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


@pytest.fixture
def fake_get(monkeypatch, no_sleep):
    """Replaces requests.get; returns the list of recorded calls."""
    import apregistry.services.http_client as http_client
    calls = []
    responses = []

    def _get(url, params=None, headers=None, timeout=None):
        calls.append({"url": url, "params": params, "headers": headers, "timeout": timeout})
        item = responses.pop(0) if len(responses) > 1 else responses[0]
        if isinstance(item, Exception):
            raise item
        return item

    monkeypatch.setattr(http_client.requests, "get", _get)

    def _queue(*items):
        responses.extend(items)
        return calls
    return _queue
