"""Core data models for sensor readings."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional, Union

Number = Union[int, float, Decimal]


def to_float(value: Optional[Number]) -> Optional[float]:
    """Convert a column value (DECIMAL aggregates included) to float."""
    if value is None:
        return None
    return float(value)


@dataclass
class SensorReading:
    """One row of the data_sensor table.

    Brightness is filled in by a later, independent message and may be None.
    The timestamp is already formatted by the store as YYYY-MM-DD HH:MM:SS.
    """
    id: int
    temperature: Optional[float]
    humidity: Optional[float]
    brightness: Optional[float]
    timestamp: Optional[str]

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "SensorReading":
        """Build a reading from a DictCursor row."""
        return cls(
            id=row["id"],
            temperature=to_float(row["suhu"]),
            humidity=to_float(row["humidity"]),
            brightness=to_float(row["kecerahan"]),
            timestamp=row["waktu"],
        )

    def to_api(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "suhu": self.temperature,
            "humidity": self.humidity,
            "kecerahan": self.brightness,
            "waktu": self.timestamp,
        }


@dataclass
class TemperatureStats:
    """Max/min/avg temperature over every stored reading.

    All three are None when the table is empty.
    """
    maximum: Optional[float]
    minimum: Optional[float]
    average: Optional[float]

    @classmethod
    def from_row(cls, row: Optional[Dict[str, Any]]) -> "TemperatureStats":
        if not row:
            return cls(None, None, None)
        return cls(
            maximum=to_float(row["suhumax"]),
            minimum=to_float(row["suhumin"]),
            average=to_float(row["suhurata"]),
        )

    def to_api(self) -> Dict[str, Any]:
        return {
            "suhumax": self.maximum,
            "suhumin": self.minimum,
            "suhurata": self.average,
        }
