from __future__ import annotations

from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator


class RouteRequest(BaseModel):
    """경로 계산 요청. start_location/destination 은 QR 노드 ID."""

    start_location: str = Field(..., min_length=1, description="출발 QR 노드 ID (예: 1E01)")
    destination: str = Field(..., min_length=1, description="도착 QR 노드 ID (예: 2S01)")
    accessibility_needed: bool = Field(default=False, description="접근성 경로 요청 여부 (현재 미적용)")
    strategy: Optional[str] = Field(default=None, description="direct 또는 graph. 미지정 시 설정값 사용")

    @field_validator("start_location", "destination", mode="before")
    @classmethod
    def strip_identifier(cls, value: Optional[str]) -> Optional[str]:
        if isinstance(value, str):
            return value.strip()
        return value


class RouteStepPayload(BaseModel):
    step_number: int
    instruction: str
    direction: str
    landmark: str
    checkpoint_qr: str
    distance: Union[int, float]
    estimated_time: int


class RoutePayload(BaseModel):
    session_id: str
    total_distance: str = Field(..., description="예: 105m")
    estimated_time: str = Field(..., description="분 단위 올림 (예: 2 minutes)")
    steps: List[RouteStepPayload]
    current_step: int = 1


class RouteResponse(BaseModel):
    success: bool = True
    route: RoutePayload


class CheckpointRequest(BaseModel):
    qr_id: str = Field(..., min_length=1, description="스캔한 QR 노드 ID")


class CheckpointResponse(BaseModel):
    success: bool
    is_correct_checkpoint: bool
    is_destination: bool
    next_step: Optional[RouteStepPayload] = None
    remaining_steps: int
    message: str
    error_code: Optional[str] = None
    progress: int = 0
    current_step: int = 1


class SessionResponse(BaseModel):
    session_id: str
    start_location: str
    destination: str
    current_step: int
    total_steps: int
    steps: List[RouteStepPayload]
    total_distance: Union[int, float]
    estimated_time: int
    progress: int = Field(..., ge=0, le=100)
    status: str
    is_active: bool
    started_at: str
    last_checkpoint_at: Optional[str] = None


class SessionStatsResponse(BaseModel):
    elapsed_seconds: int
    estimated_remaining_seconds: int
    average_step_seconds: int


class Coordinates(BaseModel):
    x: int
    y: int


class LocationPayload(BaseModel):
    qr_id: str
    floor: int
    name: str
    type: str
    coordinates: Coordinates
    nearby_landmarks: List[str] = Field(default_factory=list)
    connected_nodes: List[str] = Field(default_factory=list)


class EmergencyExitResponse(BaseModel):
    success: bool = True
    emergency_exit: LocationPayload


class LocationListResponse(BaseModel):
    success: bool = True
    locations: List[LocationPayload]
    total: int


class LocationResponse(BaseModel):
    success: bool = True
    location: LocationPayload


class PromotionPayload(BaseModel):
    title: str
    valid_until: str
    is_active: bool


class StorePayload(BaseModel):
    store_id: str
    name: str
    floor: int
    category: str
    location: Coordinates
    operating_hours: Dict[str, str]
    contact: str = ""
    description: str = ""
    promotions: List[PromotionPayload] = Field(default_factory=list)
    qr_location: str


class StoreListResponse(BaseModel):
    success: bool = True
    stores: List[StorePayload]
    total: int
    filters: Dict[str, object] = Field(default_factory=dict)


class StoreResponse(BaseModel):
    success: bool = True
    store: StorePayload


class CategoryListResponse(BaseModel):
    success: bool = True
    categories: List[str]
    total: int
