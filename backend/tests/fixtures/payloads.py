"""
Raw payload builders.

Each builder returns the plain dict shape a source hands to the
normalizer, so tests exercise the same parsing path as real data.
"""
from typing import Any, Dict, List, Optional, Sequence

START_EPOCH = 1_700_000_000  # 2023-11-14T22:13:20Z
START_ISO = "2023-11-14T22:13:20Z"


def steady_samples(
    total_distance: float,
    step_distance: float = 50.0,
    step_seconds: float = 10.0,
    heart_rate: Optional[float] = 150.0,
    power: Optional[float] = None,
    cadence: Optional[float] = None,
) -> List[Dict[str, Any]]:
    """Device records at constant speed from 0 to total_distance."""
    count = int(round(total_distance / step_distance))
    samples = []
    for i in range(count + 1):
        sample: Dict[str, Any] = {
            "timestamp": START_EPOCH + i * step_seconds,
            "distance": min(total_distance, i * step_distance),
            "speed": step_distance / step_seconds,
        }
        if heart_rate is not None:
            sample["heartRate"] = heart_rate
        if power is not None:
            sample["power"] = power
        if cadence is not None:
            sample["cadence"] = cadence
        samples.append(sample)
    return samples


def device_payload(
    records: Sequence[Dict[str, Any]],
    laps: Optional[Sequence[Dict[str, Any]]] = None,
    sport: str = "running",
    **extra: Any,
) -> Dict[str, Any]:
    payload = {"kind": "device", "sport": sport, "records": list(records), "laps": list(laps or [])}
    payload.update(extra)
    return payload


def cloud_payload(
    time: Sequence[float],
    distance: Optional[Sequence[float]] = None,
    sport_type: str = "Run",
    laps: Optional[Sequence[Dict[str, Any]]] = None,
    stream_style: str = "mapping",
    **streams: Sequence[Any],
) -> Dict[str, Any]:
    """
    Cloud export with streams in one of the three accepted layouts:
    "mapping" (name -> list), "data" (name -> {data}) or "list" ([{type, data}]).
    """
    named: Dict[str, Sequence[Any]] = {"time": list(time)}
    if distance is not None:
        named["distance"] = list(distance)
    named.update({k: list(v) for k, v in streams.items()})

    if stream_style == "data":
        packed: Any = {k: {"data": v} for k, v in named.items()}
    elif stream_style == "list":
        packed = [{"type": k, "data": v} for k, v in named.items()]
    else:
        packed = named

    detail: Dict[str, Any] = {
        "id": 987654,
        "sport_type": sport_type,
        "start_date": START_ISO,
        "laps": list(laps or []),
    }
    if distance:
        detail["distance"] = distance[-1]
    return {"kind": "cloud", "detail": detail, "streams": packed}


def manual_payload(results: Sequence[Dict[str, Any]], sport: str = "cycling") -> Dict[str, Any]:
    return {"kind": "manual", "sport": sport, "results": list(results)}


def power_zone_samples() -> List[Dict[str, Any]]:
    """Six power samples held 60 s each (180, 220, 260, 310, 360, 400 W)."""
    return [
        {"timestamp": START_EPOCH + i * 60, "distance": i * 300.0, "power": watts}
        for i, watts in enumerate([180, 220, 260, 310, 360, 400])
    ]
