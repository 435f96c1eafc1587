"""
Data Source Adapters - Normalize raw activity payloads into canonical records.

Supported payload kinds:
- device: head-unit / wearable recording (sample list + native laps)
- cloud: third-party activity export (detail object + per-metric streams)
- manual: manually logged workout steps (no time series)

Source-specific key names and fallback chains live here and nowhere else.
Adapters never raise on malformed input; anything unreadable becomes None.
"""
import math
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from trainlab.core.logging import get_logger
from trainlab.models.record import LapData, ManualStep, NormalizedActivity, Record

logger = get_logger(__name__)


# ========================================
# Value parsing helpers
# ========================================

def _to_float(value: Any) -> Optional[float]:
    """Parse a numeric sample; anything non-finite or non-numeric is None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _positive(value: Any) -> Optional[float]:
    """Readings where zero means the sensor dropped out (heart rate)."""
    number = _to_float(value)
    if number is None or number <= 0:
        return None
    return number


def _first(raw: Mapping, keys: Sequence[str]) -> Any:
    """First present, non-null value among alias keys."""
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def _parse_timestamp(value: Any) -> Optional[float]:
    """
    Parse a point in time to POSIX seconds.

    Accepts datetimes, ISO-8601 strings (naive means UTC), epoch seconds
    and epoch milliseconds.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.timestamp()

    number = _to_float(value)
    if number is not None:
        # Epoch milliseconds are 1000x larger than any plausible epoch seconds
        return number / 1000.0 if abs(number) > 1e11 else number

    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.timestamp()

    return None


def _parse_duration(value: Any) -> Optional[float]:
    """Parse seconds given as a number or as 'MM:SS' / 'H:MM:SS'."""
    number = _to_float(value)
    if number is not None:
        return number if number >= 0 else None
    if not isinstance(value, str) or ":" not in value:
        return None

    total = 0.0
    for part in value.strip().split(":"):
        piece = _to_float(part)
        if piece is None or piece < 0:
            return None
        total = total * 60 + piece
    return total


def _as_list(value: Any) -> List[Any]:
    return list(value) if isinstance(value, (list, tuple)) else []


def _at(values: Sequence[Any], index: int) -> Any:
    return values[index] if 0 <= index < len(values) else None


# ========================================
# Record construction
# ========================================

def build_records(
    samples: List[Dict[str, Any]],
    start: Optional[float] = None,
) -> Tuple[Record, ...]:
    """
    Turn parsed samples into the canonical record stream.

    Each sample holds optional floats under ts, distance, speed, heart_rate,
    power, cadence and altitude. Samples without a timestamp are placed at
    start + index seconds (start defaults to the first known timestamp).
    The output is timestamp-ascending with non-decreasing distance; missing
    distance integrates speed and missing speed is derived from the
    distance delta.
    """
    if not samples:
        return ()

    if start is None:
        start = next((s["ts"] for s in samples if s.get("ts") is not None), 0.0)

    stamped = []
    for index, sample in enumerate(samples):
        ts = sample.get("ts")
        if ts is None:
            ts = start + index
        stamped.append((ts, sample))

    # Stable: equal timestamps keep source order
    stamped.sort(key=lambda pair: pair[0])

    first_ts = stamped[0][0]
    records: List[Record] = []
    prev: Optional[Record] = None

    for ts, sample in stamped:
        raw_distance = sample.get("distance")
        raw_speed = sample.get("speed")
        dt = ts - prev.timestamp if prev is not None else 0.0

        if prev is None:
            distance = max(0.0, raw_distance) if raw_distance is not None else 0.0
        elif raw_distance is not None:
            distance = max(prev.distance_meters, raw_distance)
        else:
            step_speed = raw_speed if raw_speed is not None else prev.speed_mps
            distance = prev.distance_meters + max(0.0, step_speed) * dt

        if raw_speed is not None:
            speed = max(0.0, raw_speed)
        elif prev is not None and dt > 0:
            speed = (distance - prev.distance_meters) / dt
        elif prev is not None:
            speed = prev.speed_mps
        else:
            speed = 0.0

        record = Record(
            timestamp=ts,
            elapsed_seconds=ts - first_ts,
            distance_meters=distance,
            speed_mps=speed,
            heart_rate_bpm=sample.get("heart_rate"),
            power_watts=sample.get("power"),
            cadence_rpm=sample.get("cadence"),
            altitude_meters=sample.get("altitude"),
        )
        records.append(record)
        prev = record

    return tuple(records)


# ========================================
# Adapters
# ========================================

class RawDataAdapter(ABC):
    """Abstract base class for payload adapters."""

    source_name: str = "unknown"

    @abstractmethod
    def normalize(self, raw_data: Mapping) -> NormalizedActivity:
        """
        Normalize a raw payload to the canonical structure.

        Args:
            raw_data: Tagged payload from the source

        Returns:
            NormalizedActivity with canonical records and metadata
        """
        pass

    def _detect_activity_type(self, raw_data: Mapping) -> str:
        """Detect activity type from raw data."""
        # Common field names for activity type
        type_fields = ["sport_type", "sport", "type", "activityType", "activity_type"]

        for field_name in type_fields:
            if raw_data.get(field_name):
                return self._map_activity_type(str(raw_data[field_name]))

        return "other"

    def _map_activity_type(self, raw_type: str) -> str:
        """Map source-specific type to unified type."""
        cycling_types = ["ride", "cycling", "bike", "indoor_cycling"]
        running_types = ["run", "treadmill"]
        walking_types = ["walk"]
        hiking_types = ["hike", "hiking"]
        swimming_types = ["swim"]

        raw_lower = raw_type.lower()

        if any(t in raw_lower for t in cycling_types):
            return "cycling"
        if any(t in raw_lower for t in running_types):
            return "running"
        if any(t in raw_lower for t in walking_types):
            return "walking"
        if any(t in raw_lower for t in hiking_types):
            return "hiking"
        if any(t in raw_lower for t in swimming_types):
            return "swimming"

        return "other"

    def _finish(
        self,
        sport: str,
        records: Tuple[Record, ...],
        laps: Tuple[LapData, ...],
        total_distance: Optional[float],
        total_time: Optional[float],
        source_id: Optional[str] = None,
    ) -> NormalizedActivity:
        """Resolve totals against the records and build the activity."""
        activity = NormalizedActivity(
            sport=sport,
            source=self.source_name,
            records=records,
            laps=laps,
            start_time=records[0].timestamp if records else None,
            has_time_series=True,
            source_id=source_id,
        )

        if total_distance is None or total_distance < 0:
            total_distance = activity.max_distance()
        if total_time is None or total_time < 0:
            total_time = activity.total_duration_from_records()

        activity = replace(
            activity,
            total_distance_meters=total_distance,
            total_time_seconds=total_time,
        )

        logger.debug(
            f"Normalized {self.source_name} activity",
            sport=sport,
            records=len(records),
            laps=len(laps),
            channels=[m.value for m in activity.available_channels()],
            distance_m=round(total_distance, 1),
            duration_s=round(total_time, 1),
        )

        return activity


class DeviceAdapter(RawDataAdapter):
    """
    Adapter for device recordings (FIT-style sample and lap lists).

    Record keys: timestamp, distance, speed/enhancedSpeed, heartRate, power,
    cadence, altitude/enhancedAltitude.
    """

    source_name = "device"

    def normalize(self, raw_data: Mapping) -> NormalizedActivity:
        """Normalize a device recording."""

        sport = self._detect_activity_type(raw_data)

        samples, skipped = self._extract_samples(raw_data)
        if skipped:
            logger.warning("Skipped malformed device records", skipped=skipped)
        start = _parse_timestamp(_first(raw_data, ("startTime", "start_time")))
        records = build_records(samples, start)

        origin = records[0].timestamp if records else start
        laps = self._extract_laps(raw_data, origin)

        total_distance = _to_float(_first(raw_data, ("totalDistance", "distance")))
        total_time = _to_float(_first(
            raw_data,
            ("totalTimerTime", "moving_time", "totalElapsedTime", "duration"),
        ))

        return self._finish(
            sport, records, laps, total_distance, total_time,
            source_id=_optional_id(raw_data.get("id")),
        )

    def _extract_samples(self, raw_data: Mapping) -> Tuple[List[Dict[str, Any]], int]:
        samples = []
        skipped = 0

        for item in _as_list(raw_data.get("records")):
            if not isinstance(item, Mapping):
                skipped += 1
                continue
            samples.append({
                "ts": _parse_timestamp(_first(item, ("timestamp", "time"))),
                "distance": _to_float(_first(item, ("distance", "distanceMeters"))),
                "speed": _to_float(_first(item, ("enhancedSpeed", "speed", "enhanced_speed"))),
                "heart_rate": _positive(_first(item, ("heartRate", "heart_rate", "hr"))),
                "power": _to_float(_first(item, ("power", "watts"))),
                "cadence": _to_float(item.get("cadence")),
                "altitude": _to_float(_first(
                    item, ("enhancedAltitude", "altitude", "enhanced_altitude")
                )),
            })

        return samples, skipped

    def _extract_laps(self, raw_data: Mapping, origin: Optional[float]) -> Tuple[LapData, ...]:
        laps = []

        for item in _as_list(raw_data.get("laps")):
            if not isinstance(item, Mapping):
                continue
            lap_start = _parse_timestamp(item.get("startTime"))
            laps.append(LapData(
                index=len(laps),
                start_time=lap_start - origin if lap_start is not None and origin is not None else None,
                duration_seconds=_to_float(_first(item, ("totalElapsedTime", "totalTimerTime"))),
                distance_meters=_to_float(item.get("totalDistance")),
                avg_speed_mps=_to_float(_first(item, ("enhancedAvgSpeed", "avgSpeed"))),
                avg_power=_to_float(item.get("avgPower")),
                avg_heart_rate=_positive(item.get("avgHeartRate")),
                avg_cadence=_to_float(item.get("avgCadence")),
            ))

        return tuple(laps)


class CloudAdapter(RawDataAdapter):
    """
    Adapter for cloud activity exports (Strava-style detail + streams).

    Streams are parallel per-metric arrays; they may arrive as a mapping of
    lists, a mapping of {"data": [...]} objects, or a list of
    {"type": ..., "data": [...]} objects.
    """

    source_name = "cloud"

    STREAM_KEYS = {
        "distance": "distance",
        "speed": "velocity_smooth",
        "heart_rate": "heartrate",
        "power": "watts",
        "cadence": "cadence",
        "altitude": "altitude",
    }

    def normalize(self, raw_data: Mapping) -> NormalizedActivity:
        """Normalize a cloud export."""

        detail = raw_data.get("detail")
        if not isinstance(detail, Mapping):
            detail = raw_data

        sport = self._detect_activity_type(detail)
        if sport == "other":
            sport = self._detect_activity_type(raw_data)

        streams = self._parse_streams(raw_data.get("streams"))
        time_stream = [_to_float(v) for v in streams.get("time", [])]
        start = _parse_timestamp(_first(detail, ("start_date", "start_date_local")))

        samples = self._extract_samples(streams, time_stream, start)
        records = build_records(samples, start)

        laps = self._extract_laps(
            _as_list(detail.get("laps")) or _as_list(raw_data.get("laps")),
            time_stream,
            records[0].timestamp if records else start,
        )

        total_distance = _to_float(detail.get("distance"))
        total_time = _to_float(_first(detail, ("moving_time", "elapsed_time")))

        return self._finish(
            sport, records, laps, total_distance, total_time,
            source_id=_optional_id(detail.get("id")),
        )

    def _parse_streams(self, raw_streams: Any) -> Dict[str, List[Any]]:
        streams: Dict[str, List[Any]] = {}

        if isinstance(raw_streams, Mapping):
            for key, value in raw_streams.items():
                if isinstance(value, Mapping):
                    value = value.get("data")
                streams[str(key)] = _as_list(value)
        elif isinstance(raw_streams, (list, tuple)):
            for item in raw_streams:
                if isinstance(item, Mapping) and item.get("type"):
                    streams[str(item["type"])] = _as_list(item.get("data"))

        return streams

    def _extract_samples(
        self,
        streams: Dict[str, List[Any]],
        time_stream: List[Optional[float]],
        start: Optional[float],
    ) -> List[Dict[str, Any]]:
        length = len(time_stream) or max((len(v) for v in streams.values()), default=0)
        origin = start if start is not None else 0.0

        samples = []
        for i in range(length):
            offset = _at(time_stream, i)
            sample: Dict[str, Any] = {"ts": origin + offset if offset is not None else None}
            for name, key in self.STREAM_KEYS.items():
                value = _at(streams.get(key, []), i)
                sample[name] = _positive(value) if name == "heart_rate" else _to_float(value)
            samples.append(sample)

        return samples

    def _extract_laps(
        self,
        raw_laps: List[Any],
        time_stream: List[Optional[float]],
        origin: Optional[float],
    ) -> Tuple[LapData, ...]:
        laps = []
        base = _at(time_stream, 0)

        for item in raw_laps:
            if not isinstance(item, Mapping):
                continue

            start_time = None
            start_index = item.get("start_index")
            index_offset = (
                _at(time_stream, start_index)
                if isinstance(start_index, int) and not isinstance(start_index, bool)
                else None
            )
            if index_offset is not None and base is not None:
                start_time = index_offset - base
            else:
                lap_start = _parse_timestamp(_first(item, ("start_date", "start_date_local")))
                if lap_start is not None and origin is not None:
                    start_time = lap_start - origin

            duration = _to_float(_first(item, ("elapsed_time", "moving_time")))
            end_index = item.get("end_index")
            if duration is None and index_offset is not None and isinstance(end_index, int):
                end_offset = _at(time_stream, end_index)
                if end_offset is not None:
                    duration = max(0.0, end_offset - index_offset)

            laps.append(LapData(
                index=len(laps),
                start_time=start_time,
                duration_seconds=duration,
                distance_meters=_to_float(item.get("distance")),
                avg_speed_mps=_to_float(item.get("average_speed")),
                avg_power=_to_float(item.get("average_watts")),
                avg_heart_rate=_positive(item.get("average_heartrate")),
                avg_cadence=_to_float(item.get("average_cadence")),
            ))

        return tuple(laps)


class ManualAdapter(RawDataAdapter):
    """
    Adapter for manually logged workouts.

    Each result is one step: power, heartRate, lactate, RPE and a duration
    that is either a time ("MM:SS") or a distance, per durationType.
    There is no time series behind a manual log.
    """

    source_name = "manual"

    def normalize(self, raw_data: Mapping) -> NormalizedActivity:
        """Normalize a manual log."""

        sport = self._detect_activity_type(raw_data)
        steps = self._extract_steps(raw_data)

        total_time = _to_float(_first(raw_data, ("totalTimerTime", "totalElapsedTime")))
        if total_time is None:
            total_time = sum(s.duration_seconds or 0.0 for s in steps)
        total_distance = _to_float(raw_data.get("totalDistance"))
        if total_distance is None:
            total_distance = sum(s.distance_meters or 0.0 for s in steps)

        activity = NormalizedActivity(
            sport=sport,
            source=self.source_name,
            steps=steps,
            total_distance_meters=total_distance,
            total_time_seconds=total_time,
            has_time_series=False,
            source_id=_optional_id(raw_data.get("id")),
        )

        logger.debug(
            "Normalized manual activity",
            sport=sport,
            steps=len(steps),
            duration_s=total_time,
        )

        return activity

    def _extract_steps(self, raw_data: Mapping) -> Tuple[ManualStep, ...]:
        steps = []

        for item in _as_list(raw_data.get("results")):
            if not isinstance(item, Mapping):
                continue

            duration = None
            distance = None
            if str(item.get("durationType", "time")).lower() == "distance":
                distance = _to_float(item.get("duration"))
            else:
                duration = _parse_duration(item.get("duration"))

            steps.append(ManualStep(
                index=len(steps),
                duration_seconds=duration,
                distance_meters=distance,
                avg_power=_to_float(item.get("power")),
                avg_heart_rate=_positive(item.get("heartRate")),
                lactate=_to_float(item.get("lactate")),
                rpe=_to_float(_first(item, ("RPE", "rpe"))),
            ))

        return tuple(steps)


def _optional_id(value: Any) -> Optional[str]:
    return None if value is None else str(value)


# Adapter registry
_ADAPTERS = {
    "device": DeviceAdapter,
    "cloud": CloudAdapter,
    "manual": ManualAdapter,
}


def get_adapter(kind: str) -> RawDataAdapter:
    """
    Get the appropriate adapter for a payload kind.

    Args:
        kind: Payload kind (device, cloud, manual)

    Returns:
        Adapter instance; unknown kinds fall back to the manual adapter
    """
    adapter_class = _ADAPTERS.get(str(kind).lower())

    if not adapter_class:
        logger.warning(f"Unknown payload kind: {kind}, falling back to manual")
        adapter_class = ManualAdapter

    return adapter_class()


def normalize_payload(payload: Any) -> NormalizedActivity:
    """
    Normalize a tagged raw payload.

    Never raises on malformed input: a non-mapping payload normalizes to an
    empty manual activity with no time series.
    """
    if not isinstance(payload, Mapping):
        logger.warning("Payload is not a mapping", payload_type=type(payload).__name__)
        return ManualAdapter().normalize({})

    return get_adapter(payload.get("kind", "")).normalize(payload)
