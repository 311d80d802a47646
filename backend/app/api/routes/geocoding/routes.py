from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.core.services.geocoding import GeocodingService, geocoding_service

router = APIRouter()


def get_geocoding_service() -> GeocodingService:
    return geocoding_service


@router.get("/search")
async def search_address(
    q: str = Query(..., min_length=1),
    geocoder: GeocodingService = Depends(get_geocoding_service),
) -> Optional[dict]:
    """Address to coordinates; ``null`` when nothing matched"""
    result = await geocoder.forward(q)
    return asdict(result) if result else None


@router.get("/reverse")
async def reverse_geocode(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    geocoder: GeocodingService = Depends(get_geocoding_service),
) -> dict:
    result = await geocoder.reverse(lat, lng)
    return {
        "lat": result.lat,
        "lng": result.lng,
        "address": result.address,
        "components": result.components.to_form_fields(),
    }
