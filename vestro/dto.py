"""Data records exchanged with the Vestro and Agriwin services, and their JSON forms."""

import dataclasses
import re
import typing
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, TypeVar

T = TypeVar("T")

ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)

_TIMESTAMP = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?"
    r"(?:(Z)|([+-])(\d{2}):(\d{2}))"
)


def parse_timestamp(text: str) -> datetime:
    """Parse an RFC 3339 timestamp into an aware datetime."""
    match = _TIMESTAMP.fullmatch(text)
    if not match:
        raise ValueError(f"invalid RFC 3339 timestamp: {text!r}")
    year, month, day, hour, minute, second, frac, zulu, sign, off_h, off_m = match.groups()
    microsecond = int((frac or "")[:6].ljust(6, "0"))
    if zulu:
        tz = timezone.utc
    else:
        if int(off_h) > 23 or int(off_m) > 59:
            raise ValueError(f"invalid time zone offset in {text!r}")
        offset = timedelta(hours=int(off_h), minutes=int(off_m))
        tz = timezone(-offset if sign == "-" else offset)
    return datetime(
        int(year), int(month), int(day), int(hour), int(minute), int(second),
        microsecond, tzinfo=tz,
    )


def format_timestamp(value: datetime) -> str:
    """Format a datetime as RFC 3339, dropping trailing zeros of the fraction.

    A naive datetime is taken to be in local time.
    """
    if value.tzinfo is None or value.utcoffset() is None:
        value = value.astimezone()
    text = (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
        f"T{value.hour:02d}:{value.minute:02d}:{value.second:02d}"
    )
    if value.microsecond:
        text += "." + f"{value.microsecond:06d}".rstrip("0")
    offset = value.utcoffset() or timedelta(0)
    if not offset:
        return text + "Z"
    sign = "-" if offset < timedelta(0) else "+"
    minutes = abs(int(offset.total_seconds())) // 60
    return f"{text}{sign}{minutes // 60:02d}:{minutes % 60:02d}"


def _json(key: str, default: Any) -> Any:
    return field(default=default, metadata={"json": key})


def _json_list(key: str) -> Any:
    return field(default_factory=list, metadata={"json": key})


@dataclass
class UserToIntegrate:
    """A producer whose Vestro data is to be imported."""

    produtor_id: int = _json("produtor_id", 0)
    login: str = _json("login", "")
    senha: str = _json("senha", "")
    data: datetime = _json("data", ZERO_TIME)


@dataclass
class AuthResponse:
    """Reply of the Vestro authentication route."""

    session: str = _json("session", "")
    access: str = _json("access", "")


@dataclass
class Supply:
    """A fuel supply record."""

    id: int = _json("id", 0)
    fuel: str = _json("fuel", "")
    date: str = _json("date", "")
    volume: str = _json("volume", "")
    plate: str = _json("plate", "")
    mileage: str = _json("mileage", "")
    company: str = _json("company", "")
    employee: str = _json("employee", "")
    driver: str = _json("driver", "")
    employee_enrollment: str = _json("employeeEnrollment", "")
    driver_enrollment: str = _json("driverEnrollment", "")


@dataclass
class ProductSale:
    """A consolidated product sale."""

    id: int = _json("id", 0)
    serial_number: str = _json("serialNumber", "")
    date: str = _json("date", "")
    name: str = _json("name", "")
    amount: str = _json("amount", "")
    driver: str = _json("driver", "")
    driver_enrollment: str = _json("driverEnrollment", "")
    plate: str = _json("plate", "")
    company: str = _json("company", "")
    employee: str = _json("employee", "")
    employee_enrollment: str = _json("employeeEnrollment", "")


@dataclass
class Product:
    """A product."""

    id: int = _json("id", 0)
    name: str = _json("name", "")
    code: str = _json("code", "")


@dataclass
class FuelType:
    """A fuel type."""

    id: int = _json("id", 0)
    name: str = _json("name", "")


@dataclass
class Vehicle:
    """A vehicle."""

    id: int = _json("id", 0)
    plate: str = _json("plate", "")
    brand: str = _json("brand", "")
    model: str = _json("model", "")
    company: str = _json("companyName", "")
    is_active: bool = _json("active", False)


@dataclass
class Driver:
    """A driver."""

    id: int = _json("id", 0)
    name: str = _json("name", "")
    enrollment: str = _json("enrollment", "")
    is_active: bool = _json("active", False)


@dataclass
class Employee:
    """An employee."""

    id: int = _json("id", 0)
    name: str = _json("name", "")
    enrollment: str = _json("enrollment", "")
    is_active: bool = _json("active", False)


@dataclass
class IntegrationPayload:
    """Everything sent back to Agriwin for one producer."""

    produtor_id: int = _json("produtor_id", 0)
    fetched_at: datetime = _json("fetchedAt", ZERO_TIME)
    supplies: list[Supply] = _json_list("supplies")
    product_sales: list[ProductSale] = _json_list("productSales")
    products: list[Product] = _json_list("products")
    fuel_types: list[FuelType] = _json_list("fuelTypes")
    vehicles: list[Vehicle] = _json_list("vehicles")
    drivers: list[Driver] = _json_list("drivers")
    employees: list[Employee] = _json_list("employees")

    def is_empty(self) -> bool:
        """True when there is no transactional data to send."""
        return not self.supplies and not self.product_sales

    def to_json(self) -> dict[str, Any]:
        """Return the JSON-ready dictionary of this payload."""
        return to_json(self)


def _zero(hint: Any) -> Any:
    if typing.get_origin(hint) is list:
        return []
    if hint is datetime:
        return ZERO_TIME
    return hint()


def _decode(hint: Any, value: Any, where: str) -> Any:
    if value is None:
        return _zero(hint)
    if typing.get_origin(hint) is list:
        if not isinstance(value, list):
            raise ValueError(f"{where}: expected a JSON array, got {type(value).__name__}")
        (item_hint,) = typing.get_args(hint)
        return [_decode(item_hint, item, f"{where}[{i}]") for i, item in enumerate(value)]
    if dataclasses.is_dataclass(hint):
        return _decode_object(hint, value, where)
    if hint is datetime:
        if not isinstance(value, str):
            raise ValueError(f"{where}: expected a timestamp string")
        return parse_timestamp(value)
    if hint is bool:
        if not isinstance(value, bool):
            raise ValueError(f"{where}: expected a boolean")
        return value
    if hint is int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"{where}: expected an integer")
        return value
    if hint is str:
        if not isinstance(value, str):
            raise ValueError(f"{where}: expected a string")
        return value
    raise TypeError(f"{where}: unsupported field type {hint!r}")


def _lookup(data: dict, key: str) -> tuple:
    if key in data:
        return True, data[key]
    folded = key.casefold()
    for name, value in data.items():
        if name.casefold() == folded:
            return True, value
    return False, None


def _decode_object(kind: Any, data: Any, where: str) -> Any:
    if not isinstance(data, dict):
        raise ValueError(f"{where}: expected a JSON object, got {type(data).__name__}")
    values = {}
    for f in dataclasses.fields(kind):
        found, raw = _lookup(data, f.metadata["json"])
        if found:
            values[f.name] = _decode(f.type, raw, f"{where}.{f.metadata['json']}")
    return kind(**values)


def from_json(kind: Any, data: Any) -> Any:
    """Build a record of type ``kind`` from decoded JSON.

    Unknown keys are ignored, missing or null keys keep their zero value, and
    keys match case-insensitively when no exact match exists.
    """
    if not (isinstance(kind, type) and dataclasses.is_dataclass(kind)):
        raise TypeError(f"{kind!r} is not a record type")
    return _decode_object(kind, data, kind.__name__)


def to_json(value: Any) -> Any:
    """Convert a record, list or datetime into JSON-ready values."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            f.metadata["json"]: to_json(getattr(value, f.name))
            for f in dataclasses.fields(value)
        }
    if isinstance(value, list):
        return [to_json(item) for item in value]
    if isinstance(value, datetime):
        return format_timestamp(value)
    return value