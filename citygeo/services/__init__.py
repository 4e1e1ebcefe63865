from citygeo.services.geocoding import CityGeocoder
from citygeo.services.nominatim import NominatimClient
from citygeo.services.open_meteo import OpenMeteoGeocoder
from citygeo.services.timezones import OpenMeteoTimezoneResolver, TimezoneResolver
from citygeo.services.widgets import WidgetGeoService

__all__ = [
    "CityGeocoder",
    "NominatimClient",
    "OpenMeteoGeocoder",
    "OpenMeteoTimezoneResolver",
    "TimezoneResolver",
    "WidgetGeoService",
]
