from dataclasses import dataclass, field

SHARED = "shared"
DIVERGING = "diverging"

GRAVEL = "gravel"
TARMAC = "tarmac"
ROUTE_CHOICES = (GRAVEL, TARMAC)

# (lng, lat, elevation) - GeoJSON coordinate order
Coordinate = tuple[float, float, float]


@dataclass(frozen=True)
class TrackPoint:
    lat: float
    lng: float
    elevation: float = 0.0  # meters


@dataclass(frozen=True)
class RoutePoint:
    lat: float
    lng: float
    elevation: float  # meters
    distance_from_start: float  # meters, non-decreasing along a route


@dataclass
class ElevationProfilePoint:
    distance_km: float  # from route start
    elevation: float  # meters
    lat: float
    lng: float
    grade: float = 0.0  # percent, smoothed


@dataclass
class RouteStats:
    distance: float  # km
    elevation_gain: float  # meters
    elevation_loss: float  # meters
    max_elevation: float  # meters
    min_elevation: float  # meters


@dataclass
class SegmentStats:
    coordinates: list[Coordinate]
    distance_km: float
    elevation_gain: float  # meters, no threshold filtering
    elevation_loss: float  # meters, unsigned

    def to_dict(self) -> dict:
        return {
            "coordinates": [list(c) for c in self.coordinates],
            "distanceKm": self.distance_km,
            "elevationGain": self.elevation_gain,
            "elevationLoss": self.elevation_loss,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SegmentStats":
        return cls(
            coordinates=[_coordinate(c) for c in data.get("coordinates", [])],
            distance_km=float(data.get("distanceKm", 0.0)),
            elevation_gain=float(data.get("elevationGain", 0.0)),
            elevation_loss=float(data.get("elevationLoss", 0.0)),
        )


def _coordinate(values) -> Coordinate:
    lng, lat = float(values[0]), float(values[1])
    elevation = float(values[2]) if len(values) > 2 and values[2] is not None else 0.0
    return (lng, lat, elevation)


@dataclass
class Segment:
    """A contiguous stretch of the route, shared by both variants or diverging."""
    id: str
    type: str  # SHARED or DIVERGING
    order: int  # 1-based position along the route
    gravel: SegmentStats
    tarmac: SegmentStats

    @property
    def is_diverging(self) -> bool:
        return self.type == DIVERGING

    def stats_for(self, choice: str | None) -> SegmentStats:
        """Stats to follow for a choice. Shared segments always use the gravel proxy."""
        if self.type == DIVERGING and choice == TARMAC:
            return self.tarmac
        return self.gravel

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "order": self.order,
            "gravel": self.gravel.to_dict(),
            "tarmac": self.tarmac.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Segment":
        gravel = data.get("gravel", data.get("gravelStats"))
        tarmac = data.get("tarmac", data.get("tarmacStats"))
        if gravel is None or tarmac is None:
            raise ValueError(f"Segment {data.get('id')!r} is missing variant stats")
        segment_type = data["type"]
        if segment_type not in (SHARED, DIVERGING):
            raise ValueError(f"Unknown segment type: {segment_type!r}")
        return cls(
            id=str(data["id"]),
            type=segment_type,
            order=int(data["order"]),
            gravel=SegmentStats.from_dict(gravel),
            tarmac=SegmentStats.from_dict(tarmac),
        )


@dataclass
class BlendedRoute:
    coordinates: list[Coordinate]
    distance_km: float
    elevation_gain: float  # meters
    elevation_loss: float  # meters
    selections: dict[str, str] = field(default_factory=dict)  # segment id -> choice


@dataclass
class DaySplit:
    day_number: int  # 1-based
    start_pct: float
    end_pct: float
    start_coord_index: int
    end_coord_index: int
    distance_km: float
    elevation_gain: float
    elevation_loss: float

    def to_dict(self) -> dict:
        return {
            "day_number": self.day_number,
            "start_pct": self.start_pct,
            "end_pct": self.end_pct,
            "start_coord_index": self.start_coord_index,
            "end_coord_index": self.end_coord_index,
            "distance_km": self.distance_km,
            "elevation_gain": self.elevation_gain,
            "elevation_loss": self.elevation_loss,
        }


@dataclass
class Breakpoint:
    percentage: float
    coord_index: int
    coordinates: Coordinate
    cumulative_distance_km: float

    def to_dict(self) -> dict:
        return {
            "percentage": self.percentage,
            "coord_index": self.coord_index,
            "coordinates": list(self.coordinates),
            "cumulative_distance_km": self.cumulative_distance_km,
        }


@dataclass
class SegmentationParams:
    resample_interval_m: float = 50.0  # spacing of points compared between tracks
    overlap_threshold_m: float = 100.0  # max distance for two points to count as the same place
    min_segment_length_m: float = 500.0  # spans shorter than this are merged away
    # Keep secondary ranges moving forward along the secondary track
    clamp_secondary: bool = True
