"""
Pydantic schemas for parking lot layout and occupancy.
"""
import json
from datetime import datetime
from enum import Enum
from typing import Optional, List, FrozenSet, Union, Dict
from pydantic import BaseModel, Field, field_validator, field_serializer, model_validator

from app.schemas.reservation import Reservation, ReservationOccurrence, to_naive_local


LotId = Union[int, str]


class SpaceType(str, Enum):
    """Classification of a single parking stall."""
    REGULAR = "regular"
    VISITOR = "visitor"
    HANDICAPPED = "handicapped"
    AUTHORIZED = "authorized"

    @classmethod
    def _missing_(cls, value):
        # Stored lots use the longer "authorized personnel" label
        if isinstance(value, str):
            key = value.strip().lower()
            if key in ("authorized personnel", "authorized_personnel"):
                return cls.AUTHORIZED
            for member in cls:
                if member.value == key:
                    return member
        return None


class SpaceStatus(str, Enum):
    AVAILABLE = "available"
    OCCUPIED = "occupied"


# ============ Lot Schemas ============

class Space(BaseModel):
    """A single stall in the lot grid."""
    id: int = Field(..., ge=1, description="1-based, row-major position id")
    row: int = Field(..., ge=0)
    col: int = Field(..., ge=0)
    type: SpaceType = SpaceType.REGULAR

    class Config:
        frozen = True


class ParkingLot(BaseModel):
    """
    Lot snapshot as stored by the caller.
    `spaces` and `merged_aisles` may arrive as JSON text (stored JSONB form).
    """
    id: Optional[LotId] = None
    name: str = ""
    rows: int = Field(..., gt=0)
    cols: int = Field(..., gt=0)
    spaces: List[Space] = Field(default_factory=list)
    merged_aisles: FrozenSet[int] = Field(default_factory=frozenset)

    class Config:
        frozen = True

    @field_validator("spaces", "merged_aisles", mode="before")
    @classmethod
    def decode_serialized_array(cls, value):
        if isinstance(value, str):
            value = value.strip()
            if not value:
                return []
            return json.loads(value)
        return value

    @model_validator(mode="after")
    def check_merged_aisles(self):
        invalid = sorted(r for r in self.merged_aisles if r < 0 or r >= self.rows - 1)
        if invalid:
            raise ValueError(
                f"merged_aisles {invalid} do not exist in a lot with {self.rows} rows"
            )
        return self

    @field_serializer("merged_aisles")
    def serialize_merged_aisles(self, value: FrozenSet[int]) -> List[int]:
        return sorted(value)


# ============ Request Schemas ============

class LotCreateRequest(BaseModel):
    """Request to create a lot with default spaces."""
    id: Optional[LotId] = None
    name: str
    rows: int = Field(..., gt=0)
    cols: int = Field(..., gt=0)


class LotResizeRequest(BaseModel):
    """Request to change lot dimensions."""
    lot: ParkingLot
    rows: int
    cols: int


class MergeRowsRequest(BaseModel):
    """Request to merge two adjacent rows. Row values may be raw form text."""
    lot: ParkingLot
    row_a: Optional[Union[int, str]] = None
    row_b: Optional[Union[int, str]] = None


class SpaceTypeUpdateRequest(BaseModel):
    """Request to reclassify one space."""
    lot: ParkingLot
    space_id: int
    type: str


class OccupancyRequest(BaseModel):
    """
    Occupancy query for a lot.
    Stored reservations are filtered to active ones; `occurrences` are used as given.
    """
    lot: ParkingLot
    reservations: List[Reservation] = Field(default_factory=list)
    occurrences: List[ReservationOccurrence] = Field(default_factory=list)
    at: Optional[datetime] = Field(None, description="Query instant, defaults to now")
    occupant_names: Dict[str, str] = Field(default_factory=dict, description="user_id -> display name")
    strict_registry: bool = Field(False, description="Reject lots whose spaces do not match rows x cols")

    @field_validator("at")
    @classmethod
    def normalize_at(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_local(value) if value is not None else None


# ============ Response Schemas ============

class SpacePlacement(BaseModel):
    """Space rectangle on the lot plan."""
    space_id: int
    row: int
    col: int
    type: SpaceType
    x: float
    y: float
    width: float
    depth: float


class LotLayoutResponse(BaseModel):
    """Lot bounding box and per-space placements."""
    lot_id: Optional[LotId] = None
    rows: int
    cols: int
    width: float
    height: float
    merged_aisles: List[int]
    spaces: List[SpacePlacement]


class SpaceOccupancy(BaseModel):
    """Status of a single space at the query instant."""
    space_id: int
    row: int
    col: int
    type: SpaceType
    status: SpaceStatus
    occupied_by: Optional[str] = None
    occupied_until: Optional[datetime] = None
    occupied_until_label: Optional[str] = None


class LotOccupancy(BaseModel):
    """Per-space status plus lot aggregates."""
    lot_id: Optional[LotId] = None
    name: str = ""
    at: datetime
    spaces: List[SpaceOccupancy]
    total_spots: int
    occupied_spots: int
    available_spots: int
