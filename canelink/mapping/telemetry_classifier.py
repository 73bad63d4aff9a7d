import json
import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Union

from ..core.exceptions import ParseError
from ..models.telemetry_models import (
    GpsEvent,
    ImuEvent,
    TelemetryEvent,
    TofEvent,
    UltrasonicEvent,
    VibratorEvent,
    utcnow,
)

ULTRASONIC_THRESHOLD = 100   # cm, obstacle when closer than this
TOF_THRESHOLD = 50           # cm, stair/drop when the ground is further than this


class TelemetryClassifier:
    """Turn raw stream messages into typed, timestamped telemetry events.

    The device does not timestamp its readings, so every event is stamped
    with ``clock()`` at classification time. Note the two distance rules point
    in opposite directions: ultrasonic looks ahead (closer is worse), ToF
    looks down (further is worse).
    """

    def __init__(self,
                 ultrasonic_threshold: float = ULTRASONIC_THRESHOLD,
                 tof_threshold: float = TOF_THRESHOLD,
                 clock: Callable[[], datetime] = utcnow):
        self.ultrasonic_threshold = ultrasonic_threshold
        self.tof_threshold = tof_threshold
        self.clock = clock
        self.logger = logging.getLogger(self.__class__.__name__)
        self._builders: Dict[str, Callable[[Dict[str, Any], datetime], TelemetryEvent]] = {
            'ultrasonic': self._ultrasonic,
            'tof': self._tof,
            'vibrator': self._vibrator,
            'gps': self._gps,
            'imu': self._imu,
        }

    def process(self, raw: Union[str, bytes]) -> Optional[TelemetryEvent]:
        """Decode and classify one stream frame."""
        return self.classify(self.decode(raw))

    def decode(self, raw: Union[str, bytes]) -> Dict[str, Any]:
        try:
            if isinstance(raw, (bytes, bytearray)):
                raw = raw.decode('utf-8')
            message = json.loads(raw)
        except (UnicodeDecodeError, json.JSONDecodeError, TypeError) as e:
            raise ParseError(f"payload is not valid JSON: {e}") from e

        if not isinstance(message, dict):
            raise ParseError(f"expected a JSON object, got {type(message).__name__}")
        return message

    def classify(self, message: Dict[str, Any]) -> Optional[TelemetryEvent]:
        """Return the typed event, or None for a sensor we do not know."""
        timestamp = self.clock()
        sensor = message.get('sensor')
        builder = self._builders.get(sensor) if isinstance(sensor, str) else None
        if builder is None:
            self.logger.info(f"Ignoring data from unknown sensor: {message}")
            return None
        return builder(message, timestamp)

    # ---- Per-sensor builders ----
    def _ultrasonic(self, message: Dict[str, Any], timestamp: datetime) -> UltrasonicEvent:
        distance = _distance(message)
        return UltrasonicEvent(
            distance=distance,
            obstacle=distance < self.ultrasonic_threshold,
            timestamp=timestamp,
        )

    def _tof(self, message: Dict[str, Any], timestamp: datetime) -> TofEvent:
        distance = _distance(message)
        return TofEvent(
            distance=distance,
            stair=distance > self.tof_threshold,
            timestamp=timestamp,
        )

    def _vibrator(self, message: Dict[str, Any], timestamp: datetime) -> VibratorEvent:
        return VibratorEvent(
            pattern=message.get('pattern'),
            intensity=message.get('intensity'),
            active=message.get('active'),
            timestamp=timestamp,
        )

    def _gps(self, message: Dict[str, Any], timestamp: datetime) -> GpsEvent:
        return GpsEvent(
            latitude=message.get('latitude'),
            longitude=message.get('longitude'),
            accuracy=message.get('accuracy'),
            timestamp=timestamp,
        )

    def _imu(self, message: Dict[str, Any], timestamp: datetime) -> ImuEvent:
        return ImuEvent(
            acceleration=message.get('acceleration'),
            gyroscope=message.get('gyroscope'),
            orientation=message.get('orientation'),
            timestamp=timestamp,
        )


def _distance(message: Dict[str, Any]) -> float:
    value = message.get('distance')
    # bool is an int subclass; the device never sends one here
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ParseError(f"'{message.get('sensor')}' reading without numeric distance: {value!r}")
    return value
