import logging

import geoip2.database
import geoip2.errors
from maxminddb.errors import InvalidDatabaseError

import errors
from use_cases.domain_models import UNKNOWN_LOCATION

log = logging.getLogger(__name__)


def lookup_location(ip: str, db_path: str, locale: str = "en") -> str:
    """
    Returns "City, Subdivision, Country" for the IP address, or "(unknown)"
    when no database is configured or anything goes wrong. Failures are logged
    and never propagated.
    """
    if not db_path:
        return UNKNOWN_LOCATION

    context = {"database": db_path, "ip": ip}
    try:
        reader = geoip2.database.Reader(db_path, locales=[locale])
    except (OSError, ValueError, InvalidDatabaseError) as ex:
        e = errors.GeoIPDatabaseFailure(db_path, ex)
        log.error(e.message, extra=context)
        return UNKNOWN_LOCATION

    with reader:
        try:
            record = reader.city(ip)
        except (geoip2.errors.GeoIP2Error, ValueError, InvalidDatabaseError) as ex:
            e = errors.GeoIPLookupFailure(ip, ex)
            log.error(e.message, extra=context)
            return UNKNOWN_LOCATION

    parts = []
    city = record.city.names.get(locale)
    if city:
        parts.append(city)
    for subdivision in record.subdivisions:
        name = subdivision.names.get(locale)
        if name:
            parts.append(name)
    country = record.country.names.get(locale)
    if country:
        parts.append(country)
    return ", ".join(parts) or UNKNOWN_LOCATION
