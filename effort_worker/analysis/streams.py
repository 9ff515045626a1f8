"""
Stream Normalizer

Resolves the stream payloads handed over by activity providers into a
single named-channel view. Three container shapes are accepted:

- channel map:          {"distance": [...], "time": [...]}
- wrapped channel map:  {"distance": {"data": [...]}, ...}
- typed records:        [{"type": "distance", "data": [...]}, ...]

A top-level {"streams": ...} envelope is unwrapped first.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from scipy import signal

from .errors import InvalidStreamPayloadError


class StreamShape(Enum):
    """Container shapes a raw stream payload can arrive in"""

    CHANNEL_MAP = "channel_map"
    WRAPPED_CHANNEL_MAP = "wrapped_channel_map"
    TYPED_RECORDS = "typed_records"


# Alternative names for canonical channels, in order of preference
CHANNEL_ALIASES: Dict[str, List[str]] = {
    "time": ["time"],
    "distance": ["distance"],
    "altitude": ["altitude"],
    "velocity": ["velocity_smooth", "velocity"],
}


@dataclass(frozen=True)
class NormalizedStreams:
    """Named channels of one activity, each a plain list of samples"""

    shape: StreamShape
    channels: Dict[str, List[Any]] = field(default_factory=dict)

    def get(self, name: str) -> Optional[List[Any]]:
        """Return the samples for a canonical channel, or None if absent"""
        for key in CHANNEL_ALIASES.get(name, [name]):
            samples = self.channels.get(key)
            if samples is not None:
                return samples
        return None

    def has(self, name: str) -> bool:
        return self.get(name) is not None

    @property
    def time(self) -> Optional[List[Any]]:
        return self.get("time")

    @property
    def distance(self) -> Optional[List[Any]]:
        return self.get("distance")

    @property
    def altitude(self) -> Optional[List[Any]]:
        return self.get("altitude")

    @property
    def velocity(self) -> Optional[List[Any]]:
        return self.get("velocity")


def _unwrap(payload: Any) -> Any:
    if isinstance(payload, Mapping) and isinstance(payload.get("streams"), (Mapping, list)):
        return payload["streams"]
    return payload


def detect_stream_shape(payload: Any) -> StreamShape:
    """
    Work out which container shape a payload uses.

    Raises:
        InvalidStreamPayloadError: payload is neither a mapping nor a list
    """
    payload = _unwrap(payload)

    if isinstance(payload, list):
        return StreamShape.TYPED_RECORDS

    if not isinstance(payload, Mapping):
        raise InvalidStreamPayloadError(
            f"Stream payload must be a mapping or a list, got {type(payload).__name__}"
        )

    for value in payload.values():
        if isinstance(value, Mapping):
            return StreamShape.WRAPPED_CHANNEL_MAP
    return StreamShape.CHANNEL_MAP


def _channel_data(value: Any) -> Optional[List[Any]]:
    """Pull the sample list out of a bare list or a {"data": [...]} wrapper"""
    if isinstance(value, list):
        return value
    if isinstance(value, Mapping) and isinstance(value.get("data"), list):
        return value["data"]
    return None


def normalize_streams(payload: Any) -> NormalizedStreams:
    """
    Resolve a raw stream payload into a NormalizedStreams view.

    Args:
        payload: Stream payload in any of the supported shapes

    Returns:
        NormalizedStreams with every recognisable channel
    """
    if isinstance(payload, NormalizedStreams):
        return payload

    shape = detect_stream_shape(payload)
    payload = _unwrap(payload)
    channels: Dict[str, List[Any]] = {}

    if shape is StreamShape.TYPED_RECORDS:
        for record in payload:
            if not isinstance(record, Mapping) or not record.get("type"):
                continue
            data = _channel_data(record.get("data"))
            if data is not None:
                channels[str(record["type"])] = data
    else:
        for name, value in payload.items():
            data = _channel_data(value)
            if data is not None:
                channels[str(name)] = data

    return NormalizedStreams(shape=shape, channels=channels)


def smooth_altitude(altitudes: List[float], window_size: int = 5) -> List[float]:
    """
    Apply Savitzky-Golay filter to smooth noisy barometric/GPS altitude.

    Args:
        altitudes: Raw altitude samples in meters
        window_size: Size of smoothing window (made odd if even)

    Returns:
        List of smoothed altitude values
    """
    # Ensure window size is odd
    if window_size % 2 == 0:
        window_size += 1

    if len(altitudes) < window_size or window_size < 3:
        return list(altitudes)

    smoothed = signal.savgol_filter(altitudes, window_length=window_size, polyorder=2)

    return smoothed.tolist()
