"""Cache diagnostics and admin API schemas."""

from pydantic import BaseModel, ConfigDict, Field

from app.domain.enums import PerformanceLabel, RevalidateTarget


class CacheOperationResponse(BaseModel):
    """Outcome of a revalidate or clear."""

    model_config = ConfigDict(from_attributes=True)

    success: bool
    error: str | None = None
    errors: list[str] = Field(default_factory=list)


class CacheStatsResponse(BaseModel):
    """Store introspection (Redis INFO + DBSIZE)."""

    model_config = ConfigDict(from_attributes=True)

    total_keys: int
    memory_usage: str
    evicted_keys: int
    uptime_seconds: int
    peak_memory_usage: str
    max_memory_policy: str


class CacheMetricsBody(BaseModel):
    """Hit/miss metrics of this instance (rates in percent, latency in ms)."""

    model_config = ConfigDict(from_attributes=True)

    hit_rate: float
    miss_rate: float
    total_requests: int
    avg_latency: float
    cache_size: int
    memory_usage: str
    error_rate: float = Field(default=0.0, description="Failed store operations in the alert window, percent")
    alerting: bool = False


class CacheInsightsBody(BaseModel):
    """Advisory label and recommendations."""

    model_config = ConfigDict(from_attributes=True)

    performance: PerformanceLabel
    recommendations: list[str] = Field(default_factory=list)


class CacheMetricsResponse(BaseModel):
    """Response for GET /cache/metrics."""

    metrics: CacheMetricsBody
    insights: CacheInsightsBody


class CacheHealthResponse(BaseModel):
    """Response for GET /cache/health."""

    model_config = ConfigDict(from_attributes=True)

    available: bool
    memory_usage: str
    total_keys: int
    metrics: CacheMetricsBody | None = None
    insights: CacheInsightsBody | None = None


class RevalidateRequest(BaseModel):
    """Request body for POST /cache/revalidate (development only)."""

    target: RevalidateTarget
    id: str | None = Field(default=None, min_length=1, max_length=255)
    slug: str | None = Field(default=None, min_length=1, max_length=255)
