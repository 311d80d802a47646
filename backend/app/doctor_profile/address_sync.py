"""
Two-way sync between the practice address text fields and the map marker.

Every edit issues a new ``SyncToken`` tagged with where it came from. A
geocoding result is only applied while the token that started it is still
the current one, so a slow lookup can never overwrite a newer edit.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional
import asyncio

from app.core.config import settings
from app.core.exceptions import NetworkError
from app.core.logging import get_logger
from app.core.services.geocoding import (
    GeocodingService,
    build_search_query,
    geocoding_service,
    parse_display_address,
)
from app.doctor_profile.steps import ADDRESS_TEXT_FIELDS

logger = get_logger()


class UpdateSource(str, Enum):
    MAP = "map"
    TEXT = "text"
    NONE = "none"


@dataclass(frozen=True)
class SyncToken:
    source: UpdateSource
    generation: int


class AddressSync:
    def __init__(
        self,
        address_getter: Callable[[], Dict[str, Any]],
        geocoder: Optional[GeocodingService] = None,
        settle_seconds: Optional[float] = None,
    ):
        self._address_getter = address_getter
        self.geocoder = geocoder or geocoding_service
        # Debounce for typing only; ordering is decided by the token
        self.settle_seconds = (
            settings.ADDRESS_SYNC_SETTLE_SECONDS
            if settle_seconds is None
            else settle_seconds
        )
        self.token = SyncToken(UpdateSource.NONE, 0)

    @property
    def address(self) -> Dict[str, Any]:
        return self._address_getter()

    @property
    def location(self) -> Optional[Dict[str, float]]:
        return self.address.get("location")

    def _issue(self, source: UpdateSource) -> SyncToken:
        self.token = SyncToken(source, self.token.generation + 1)
        return self.token

    def is_current(self, token: SyncToken) -> bool:
        return token == self.token

    async def field_changed(self, field: str, value: str) -> bool:
        """
        Record a typed edit and reposition the marker.

        Returns True when a forward geocode result was applied.
        """
        if field not in ADDRESS_TEXT_FIELDS:
            raise ValueError(f"Unknown address field: {field}")

        self.address[field] = value
        token = self._issue(UpdateSource.TEXT)

        if self.settle_seconds:
            await asyncio.sleep(self.settle_seconds)
            if not self.is_current(token):
                return False

        query = build_search_query(self.address)
        if not query:
            return False

        try:
            result = await self.geocoder.forward(query)
        except NetworkError as e:
            logger.warning(f"Forward geocode failed for '{query}': {e.details}")
            return False

        if result is None or not self.is_current(token):
            return False

        self.address["location"] = {"lat": result.lat, "lng": result.lng}
        return True

    async def map_clicked(self, lat: float, lng: float) -> bool:
        """
        Move the marker and back-fill the text fields from a reverse lookup.

        The location is written immediately. Returns True when address
        fields were back-filled.
        """
        token = self._issue(UpdateSource.MAP)
        self.address["location"] = {"lat": lat, "lng": lng}

        try:
            result = await self.geocoder.reverse(lat, lng)
        except NetworkError as e:
            logger.warning(f"Reverse geocode failed for ({lat}, {lng}): {e.details}")
            return False

        if not self.is_current(token):
            return False

        if not result.components.is_empty:
            fields = result.components.to_form_fields()
        elif result.address:
            fields = parse_display_address(result.address)
        else:
            return False

        # Back-fill is tagged as map-sourced, so it never triggers a forward lookup
        for name, value in fields.items():
            if value:
                self.address[name] = value
        return True
