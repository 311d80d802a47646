import asyncio
from typing import Dict, Any, Callable, Awaitable, Optional
from datetime import datetime, timedelta, timezone
from enum import Enum

from app.core.config import settings
from app.core.logging import get_logger
from app.core.database import get_supabase

logger = get_logger()


class ServiceStatus(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    DEGRADED = "degraded"
    STARTING = "starting"


class HealthCheck:
    def __init__(self):
        self._services: Dict[str, ServiceStatus] = {}
        self._check_functions: Dict[str, Callable[[], Awaitable[bool]]] = {}
        self._timeouts: Dict[str, float] = {}
        self._critical: Dict[str, bool] = {}
        self._lock = asyncio.Lock()

        self._cache_duration: timedelta = timedelta(seconds=25)
        self._cache_status: Optional[Dict[str, Any]] = None
        self._last_check_time: Optional[datetime] = None

    async def add_service(
        self,
        service_name: str,
        check_function: Callable[[], Awaitable[bool]],
        timeout: float = 5.0,
        critical: bool = True,
    ) -> None:
        self._services[service_name] = ServiceStatus.STARTING
        self._check_functions[service_name] = check_function
        self._timeouts[service_name] = timeout
        self._critical[service_name] = critical
        logger.info(f"Health check registered for '{service_name}'")

    async def check_service(self, service_name: str) -> ServiceStatus:
        try:
            healthy = await asyncio.wait_for(
                self._check_functions[service_name](), timeout=self._timeouts[service_name]
            )
        except asyncio.TimeoutError:
            logger.warning(f"Health check for '{service_name}' timed out")
            healthy = False
        status = ServiceStatus.HEALTHY if healthy else ServiceStatus.UNHEALTHY
        self._services[service_name] = status
        return status

    async def check_all_services(self) -> Dict[str, Any]:
        async with self._lock:
            now = datetime.now(timezone.utc)
            if (
                self._cache_status is not None
                and self._last_check_time is not None
                and now - self._last_check_time < self._cache_duration
            ):
                return self._cache_status

            services = {}
            for name in self._check_functions:
                services[name] = (await self.check_service(name)).value

            unhealthy = [name for name, value in services.items() if value != ServiceStatus.HEALTHY]
            if not unhealthy:
                overall = ServiceStatus.HEALTHY
            elif any(self._critical[name] for name in unhealthy):
                overall = ServiceStatus.UNHEALTHY
            else:
                overall = ServiceStatus.DEGRADED

            self._cache_status = {
                "status": overall.value,
                "services": services,
                "environment": settings.ENVIRONMENT,
                "timestamp": now.isoformat(),
            }
            self._last_check_time = now
            return self._cache_status

    async def check_supabase(self) -> bool:
        """Health check for the Supabase database API"""
        try:
            supabase = get_supabase()
            supabase.table(settings.PROFILES_TABLE).select("id").limit(1).execute()
            return True
        except Exception as e:
            logger.error(f"Supabase health check failed: {e}")
            return False

    async def cleanup(self) -> None:
        self._cache_status = None
        self._last_check_time = None


health_checker = HealthCheck()
