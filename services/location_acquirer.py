import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional, Protocol, Tuple

from pydantic import BaseModel, ConfigDict

from core.config import GPS_BACKOFF_SECONDS, GPS_MAX_RETRIES
from core.errors import PositionTimeout, PositionUnavailable, SensorError
from models.location import PositionFix
from utils.gps_quality import UNKNOWN_ACCURACY_METERS, assess_gps_quality

logger = logging.getLogger(__name__)

# Extra time on top of the sensor's own timeout before we stop waiting on it
SENSOR_GRACE_SECONDS = 2.0


class SensorOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    high_accuracy: bool
    timeout_ms: int
    max_cached_age_ms: int


class SensorReading(BaseModel):
    latitude: float
    longitude: float
    accuracy_meters: Optional[float] = None


class DeviceSensor(Protocol):
    async def get_current_position(self, options: SensorOptions) -> SensorReading:
        """Return one reading or raise PermissionDenied / PositionUnavailable / PositionTimeout."""
        ...


# Each retry loosens what we ask of the sensor
ATTEMPT_PLAN: Tuple[SensorOptions, ...] = (
    SensorOptions(high_accuracy=True, timeout_ms=30000, max_cached_age_ms=0),
    SensorOptions(high_accuracy=True, timeout_ms=20000, max_cached_age_ms=5000),
    SensorOptions(high_accuracy=False, timeout_ms=15000, max_cached_age_ms=10000),
)


def _epoch_ms() -> int:
    return int(time.time() * 1000)


class LocationAcquirer:
    """Polls a device sensor for a usable fix, retrying under degraded settings.

    Attempts run one after the other, never in parallel, so the hardware sensor
    only ever sees a single in-flight request. ``sleep`` and ``clock`` are
    injectable so tests do not wait on real time.
    """

    def __init__(
        self,
        sensor: DeviceSensor,
        backoff_seconds: float = GPS_BACKOFF_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], int] = _epoch_ms,
        attempt_plan: Tuple[SensorOptions, ...] = ATTEMPT_PLAN,
        grace_seconds: float = SENSOR_GRACE_SECONDS,
    ):
        self.sensor = sensor
        self.backoff_seconds = backoff_seconds
        self._sleep = sleep
        self._clock = clock
        self.attempt_plan = attempt_plan
        self.grace_seconds = grace_seconds

    async def _read(self, options: SensorOptions) -> PositionFix:
        timeout = options.timeout_ms / 1000 + self.grace_seconds
        try:
            reading = await asyncio.wait_for(
                self.sensor.get_current_position(options), timeout=timeout
            )
        except asyncio.TimeoutError as exc:
            raise PositionTimeout() from exc

        accuracy = reading.accuracy_meters
        if accuracy is None or accuracy < 0:
            accuracy = UNKNOWN_ACCURACY_METERS

        return PositionFix(
            latitude=reading.latitude,
            longitude=reading.longitude,
            accuracy_meters=accuracy,
            captured_at_epoch_ms=self._clock(),
        )

    async def acquire(self, max_retries: int = GPS_MAX_RETRIES) -> PositionFix:
        attempts = min(max(0, max_retries), len(self.attempt_plan) - 1) + 1
        best_fix: Optional[PositionFix] = None
        last_error: Optional[SensorError] = None

        for attempt in range(attempts):
            options = self.attempt_plan[attempt]
            is_last = attempt == attempts - 1

            logger.info(
                f"[GPS] Attempt {attempt + 1}/{attempts} "
                f"(high_accuracy={options.high_accuracy}, timeout={options.timeout_ms}ms, "
                f"max_age={options.max_cached_age_ms}ms)"
            )

            try:
                fix = await self._read(options)
            except SensorError as exc:
                last_error = exc
                logger.warning(f"[GPS] Attempt {attempt + 1} failed: {exc.code}")
            else:
                if best_fix is None or fix.accuracy_meters < best_fix.accuracy_meters:
                    best_fix = fix

                quality = assess_gps_quality(fix.accuracy_meters)
                if quality.acceptable:
                    logger.info(
                        f"[GPS] ✅ Fix accepted: {fix.accuracy_meters:.0f}m ({quality.label})"
                    )
                    return fix

                logger.warning(
                    f"[GPS] Fix discarded: {fix.accuracy_meters:.0f}m ({quality.label})"
                )

            if not is_last:
                await self._sleep(self.backoff_seconds)

        if best_fix is not None:
            logger.warning(
                f"[GPS] ⚠️ Retries exhausted, using best fix ({best_fix.accuracy_meters:.0f}m)"
            )
            return best_fix

        raise last_error or PositionUnavailable()


class ReportedPositionSensor:
    """Sensor adapter that replays a fix reported by the client device.

    The server has no GPS of its own; the device sends its reading with the
    punch request and this adapter feeds it through the normal acquisition path.
    """

    def __init__(
        self,
        latitude: float,
        longitude: float,
        accuracy_meters: Optional[float] = None,
    ):
        self.reading = SensorReading(
            latitude=latitude, longitude=longitude, accuracy_meters=accuracy_meters
        )

    async def get_current_position(self, options: SensorOptions) -> SensorReading:
        return self.reading
