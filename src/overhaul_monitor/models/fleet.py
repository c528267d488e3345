"""Aircraft and component records consumed by the engine.

These are owned by the host application. The engine reads them and
mutates only the hour fields through the store's atomic operations.
"""

from typing import List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from .enums import LifeUnit


class LifeRecord(BaseModel):
    """Life limit of a component in one unit."""

    model_config = ConfigDict(from_attributes=True)

    unit: LifeUnit
    limit: float = Field(..., ge=0)
    accumulated: float = Field(default=0.0, ge=0)
    remaining: Optional[float] = None

    def recompute_remaining(self) -> float:
        """Refresh ``remaining`` as limit minus accumulated, floored at zero."""
        self.remaining = max(0.0, self.limit - self.accumulated)
        return self.remaining


class PendingIncrement(BaseModel):
    """Hours already counted in the aircraft reading but not yet applied to these components.

    Left behind by a propagation cancelled after it had written to some
    components. The next propagation for the aircraft applies it first.
    """

    model_config = ConfigDict(from_attributes=True)

    increment: float = Field(..., gt=0)
    component_ids: List[str] = Field(default_factory=list)


class Aircraft(BaseModel):
    """An aircraft and its cumulative flight-hour reading."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(default_factory=lambda: uuid4().hex)
    registration: str = Field(..., description="Tail number, e.g. 'XA-ABC'")
    cumulative_flight_hours: float = Field(default=0.0, ge=0)
    pending: Optional[PendingIncrement] = None


class Component(BaseModel):
    """A serialised component, optionally installed on one aircraft."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(default_factory=lambda: uuid4().hex)
    serial_number: str
    name: str = ""
    installed_on: Optional[str] = Field(default=None, description="Aircraft id, None when stored")
    life_records: List[LifeRecord] = Field(default_factory=list)

    @property
    def hours_record(self) -> Optional[LifeRecord]:
        """The HOURS life record, or None when the component is not hours-tracked."""
        for record in self.life_records:
            if record.unit == LifeUnit.HOURS:
                return record
        return None

    @property
    def is_hours_tracked(self) -> bool:
        return self.hours_record is not None

    @property
    def cumulative_hours(self) -> Optional[float]:
        record = self.hours_record
        return record.accumulated if record is not None else None
