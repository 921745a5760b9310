"""Data models for lookup results and feed queries."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass(frozen=True)
class Network:
    asn: int = 0
    isp: str = ""
    type: str = ""
    org: str = ""
    abuse_email: str = ""
    abuse_phone: str = ""
    domain: str = ""


@dataclass(frozen=True)
class Location:
    country: str = ""
    state: str = ""
    city: str = ""
    timezone: str = ""
    longitude: float = 0.0
    latitude: float = 0.0
    geo_hash: str = ""


@dataclass(frozen=True)
class Device:
    os: str = ""
    version: str = ""


@dataclass(frozen=True)
class Enrichment:
    provider: str = ""
    type: str = ""
    last_seen: str = ""


@dataclass(frozen=True)
class IpData:
    devices: tuple[Device, ...] = ()
    device_count: int = 0
    behavior: tuple[str, ...] = ()
    categories: tuple[str, ...] = ()
    enriched: tuple[Enrichment, ...] = ()
    ip_risk: int = 0


@dataclass(frozen=True)
class IpRecord:
    """Enrichment details returned by ``/lookup/ip/{ip}``."""

    ip: str = ""
    network: Network = field(default_factory=Network)
    location: Location = field(default_factory=Location)
    ip_data: IpData = field(default_factory=IpData)

    @classmethod
    def from_dict(cls, payload: Any) -> "IpRecord":
        """Build a record from decoded JSON.

        Missing keys fall back to zero values and unknown keys are ignored.
        Raises ``TypeError`` or ``ValueError`` when the payload has the wrong shape.
        """
        data = _object(payload, "response")
        ip_data = _object(data.get("ip_data"), "ip_data")
        return cls(
            ip=_str(data.get("ip")),
            network=Network(**_fields(Network, _object(data.get("network"), "network"))),
            location=Location(**_fields(Location, _object(data.get("location"), "location"))),
            ip_data=IpData(
                devices=tuple(
                    Device(**_fields(Device, _object(item, "device")))
                    for item in _list(ip_data.get("devices"), "devices")
                ),
                device_count=_int(ip_data.get("device_count")),
                behavior=tuple(_str(item) for item in _list(ip_data.get("behavior"), "behavior")),
                categories=tuple(
                    _str(item) for item in _list(ip_data.get("categories"), "categories")
                ),
                enriched=tuple(
                    Enrichment(**_fields(Enrichment, _object(item, "enriched")))
                    for item in _list(ip_data.get("enriched"), "enriched")
                ),
                ip_risk=_int(ip_data.get("ip_risk")),
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class AnonymizersQuery:
    """Filters and output options for the anonymizers feed.

    ``None`` and ``""`` both mean "no filter"; unset filters are left out of
    the query string. ``full``, ``format`` and ``order`` are always sent.
    """

    provider: str | None = None
    type: str | None = None
    last_observed: str | None = None
    country_code: str | None = None
    format: str = "CSV"
    full: bool = False
    order: str = "desc"

    def to_params(self) -> dict[str, str]:
        params: dict[str, str] = {}
        for key in ("provider", "type", "last_observed", "country_code"):
            value = getattr(self, key)
            if value:
                params[key] = value
        params["full"] = "true" if self.full else "false"
        params["format"] = self.format
        params["order"] = self.order
        return params


def _fields(model: type, data: dict[str, Any]) -> dict[str, Any]:
    converted: dict[str, Any] = {}
    for name, default in asdict(model()).items():
        value = data.get(name)
        if isinstance(default, int):
            converted[name] = _int(value)
        elif isinstance(default, float):
            converted[name] = _float(value)
        else:
            converted[name] = _str(value)
    return converted


def _object(value: Any, name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise TypeError(f"expected object for {name}, got {type(value).__name__}")
    return value


def _list(value: Any, name: str) -> list[Any] | tuple[Any, ...]:
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise TypeError(f"expected array for {name}, got {type(value).__name__}")
    return value


def _str(value: Any) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise TypeError(f"expected string, got {type(value).__name__}")
    return value


def _int(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"expected number, got {type(value).__name__}")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"expected integer, got {value}")
    return int(value)


def _float(value: Any) -> float:
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"expected number, got {type(value).__name__}")
    return float(value)
