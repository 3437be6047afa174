from unittest.mock import patch, MagicMock

import geoip2.errors

from services import geoip_service


def _record(city="Paris", subdivisions=("Île-de-France",), country="France"):
    record = MagicMock()
    record.city.names = {"en": city} if city else {}
    record.subdivisions = [MagicMock(names={"en": name}) for name in subdivisions]
    record.country.names = {"en": country} if country else {}
    return record


def test_no_database_configured():
    assert geoip_service.lookup_location("203.0.113.7", "") == "(unknown)"


@patch("services.geoip_service.geoip2.database.Reader")
def test_location_is_joined(mock_reader_cls):
    reader = mock_reader_cls.return_value
    reader.__enter__.return_value = reader
    reader.city.return_value = _record()

    location = geoip_service.lookup_location("203.0.113.7", "/db/GeoLite2-City.mmdb", "en")

    assert location == "Paris, Île-de-France, France"
    mock_reader_cls.assert_called_once_with("/db/GeoLite2-City.mmdb", locales=["en"])
    reader.city.assert_called_once_with("203.0.113.7")


@patch("services.geoip_service.geoip2.database.Reader")
def test_partial_record(mock_reader_cls):
    reader = mock_reader_cls.return_value
    reader.city.return_value = _record(city=None, subdivisions=())

    assert geoip_service.lookup_location("203.0.113.7", "/db/city.mmdb") == "France"


@patch("services.geoip_service.geoip2.database.Reader")
def test_lookup_failure_degrades_to_unknown(mock_reader_cls, caplog):
    mock_reader_cls.return_value.city.side_effect = geoip2.errors.AddressNotFoundError("not found")

    assert geoip_service.lookup_location("10.0.0.1", "/db/city.mmdb") == "(unknown)"
    assert "10.0.0.1" in caplog.text


@patch("services.geoip_service.geoip2.database.Reader")
def test_invalid_ip_degrades_to_unknown(mock_reader_cls):
    mock_reader_cls.return_value.city.side_effect = ValueError("'' does not appear to be an IPv4 or IPv6 address")

    assert geoip_service.lookup_location("", "/db/city.mmdb") == "(unknown)"


@patch("services.geoip_service.geoip2.database.Reader", side_effect=FileNotFoundError("gone"))
def test_database_failure_degrades_to_unknown(_mock_reader_cls, caplog):
    assert geoip_service.lookup_location("203.0.113.7", "/db/city.mmdb") == "(unknown)"
    assert "/db/city.mmdb" in caplog.text
