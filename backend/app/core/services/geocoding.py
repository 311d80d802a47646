"""
Nominatim geocoding client.

Forward lookups turn a free-text address into coordinates; reverse lookups
turn a map click into address components that can back-fill the practice
address fields. Nominatim's usage policy requires an identifying
User-Agent, which is taken from settings.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
import re

import httpx

from app.core.config import settings
from app.core.exceptions import NetworkError
from app.core.logging import get_logger

logger = get_logger()


@dataclass
class AddressComponents:
    road: str = ""
    house_number: str = ""
    suburb: str = ""
    city: str = ""
    county: str = ""
    state: str = ""
    postcode: str = ""
    country: str = ""

    @classmethod
    def from_nominatim(cls, address: Dict[str, Any]) -> "AddressComponents":
        return cls(
            road=address.get("road") or address.get("street") or "",
            house_number=address.get("house_number") or "",
            suburb=address.get("suburb") or address.get("neighbourhood") or "",
            city=address.get("city") or address.get("town") or address.get("village") or "",
            county=address.get("county") or "",
            state=address.get("state") or "",
            postcode=address.get("postcode") or "",
            country=address.get("country") or "",
        )

    @property
    def street_address(self) -> str:
        if self.house_number and self.road:
            return f"{self.house_number} {self.road}"
        return self.road

    @property
    def is_empty(self) -> bool:
        return not any(vars(self).values())

    def to_form_fields(self) -> Dict[str, str]:
        return {
            "streetAddress": self.street_address,
            "city": self.city,
            "state": self.state,
            "postalCode": self.postcode,
            "country": self.country,
        }


@dataclass
class GeocodeResult:
    lat: float
    lng: float
    address: str = ""


@dataclass
class ReverseGeocodeResult:
    lat: float
    lng: float
    address: str
    components: AddressComponents = field(default_factory=AddressComponents)


def format_address(components: AddressComponents) -> str:
    """Single-line address: street, city, "state postcode", country"""
    parts = []
    if components.street_address:
        parts.append(components.street_address)
    if components.city:
        parts.append(components.city)
    if components.state:
        if components.postcode:
            parts.append(f"{components.state} {components.postcode}")
        else:
            parts.append(components.state)
    elif components.postcode:
        parts.append(components.postcode)
    if components.country:
        parts.append(components.country)
    return ", ".join(parts)


def parse_display_address(address: str) -> Dict[str, str]:
    """
    Best-effort split of a comma separated address into form fields.

    Used when a reverse lookup returns a display string but no structured
    components.
    """
    parts = [part.strip() for part in address.split(",")]
    street_address = parts[0] if len(parts) >= 1 else ""
    city = parts[1] if len(parts) >= 2 else ""
    state = ""
    postal_code = ""
    country = ""

    if len(parts) >= 3 and parts[2]:
        state_postal = parts[2].split()
        if len(state_postal) > 1:
            state = state_postal[0]
            postal_code = " ".join(state_postal[1:])
        else:
            state = parts[2]

    if len(parts) >= 4:
        if not postal_code:
            if re.search(r"\d", parts[3]):
                postal_code = parts[3]
            else:
                country = parts[3]
        else:
            country = parts[3]

    if not country and parts:
        country = parts[-1]

    return {
        "streetAddress": street_address,
        "city": city,
        "state": state,
        "postalCode": postal_code,
        "country": country,
    }


def build_search_query(address: Dict[str, Any]) -> Optional[str]:
    """Join the non-empty address parts; None when there is no city to anchor on"""
    city = (address.get("city") or "").strip()
    if not city:
        return None
    parts = [
        address.get("streetAddress"),
        city,
        address.get("state"),
        address.get("postalCode"),
        address.get("country"),
    ]
    return ", ".join(part.strip() for part in parts if part and part.strip())


class GeocodingService:
    def __init__(
        self,
        base_url: Optional[str] = None,
        user_agent: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.NOMINATIM_BASE_URL).rstrip("/")
        self.headers = {
            "User-Agent": user_agent or settings.NOMINATIM_USER_AGENT,
            "Accept": "application/json",
        }
        self.timeout = timeout or settings.GEOCODING_TIMEOUT_SECONDS
        self._transport = transport

    async def _get(self, path: str, params: Dict[str, Any]) -> Any:
        url = f"{self.base_url}/{path}"
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                resp = await client.get(url, params=params, headers=self.headers)
        except httpx.HTTPError as e:
            logger.warning(f"Geocoding request to {path} failed: {e}")
            raise NetworkError("Geocoding provider unreachable", details=str(e))

        if resp.status_code >= 400:
            logger.warning(f"Nominatim error {resp.status_code}: {resp.text[:200]}")
            raise NetworkError(
                "Geocoding provider error", details=f"HTTP {resp.status_code}"
            )
        try:
            return resp.json()
        except ValueError as e:
            logger.warning(f"Nominatim returned a non-JSON body: {resp.text[:200]}")
            raise NetworkError("Geocoding provider error", details=f"Invalid response: {e}")

    async def forward(self, query: str) -> Optional[GeocodeResult]:
        """Address to coordinates. None when nothing usable was found."""
        query = (query or "").strip()
        if not query:
            return None

        data = await self._get(
            "search",
            {"format": "json", "q": query, "limit": 1, "addressdetails": 1},
        )
        if not isinstance(data, list) or not data:
            logger.info(f"No geocoding results for: {query}")
            return None

        result = data[0]
        if not isinstance(result, dict):
            return None
        try:
            lat = float(result.get("lat"))
            lng = float(result.get("lon"))
        except (TypeError, ValueError):
            logger.info(f"Invalid coordinates returned for: {query}")
            return None

        return GeocodeResult(lat=lat, lng=lng, address=result.get("display_name", ""))

    async def reverse(self, lat: float, lng: float) -> ReverseGeocodeResult:
        """Coordinates to address components"""
        data = await self._get(
            "reverse",
            {
                "format": "json",
                "lat": lat,
                "lon": lng,
                "addressdetails": 1,
                "accept-language": "en",
            },
        )
        if not isinstance(data, dict) or not isinstance(data.get("address"), dict):
            logger.info(f"No address data found for ({lat}, {lng})")
            return ReverseGeocodeResult(lat=lat, lng=lng, address="")

        components = AddressComponents.from_nominatim(data["address"])
        return ReverseGeocodeResult(
            lat=lat,
            lng=lng,
            address=format_address(components),
            components=components,
        )


# Singleton instance
geocoding_service = GeocodingService()
