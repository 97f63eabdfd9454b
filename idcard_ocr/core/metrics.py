from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest

# counters
stage_invocations_total = Counter(
    "idcard_stage_invocations_total",
    "total number of model invocations per pipeline stage",
    ["stage", "status"],
)

items_total = Counter(
    "idcard_items_total",
    "total number of processed images by outcome",
    ["status"],
)

field_readings_total = Counter(
    "idcard_field_readings_total",
    "total number of field readings by outcome",
    ["outcome"],
)

crop_failures_total = Counter(
    "idcard_crop_failures_total",
    "total number of field regions that could not be cropped",
    ["reason"],
)

# histograms
stage_duration_seconds = Histogram(
    "idcard_stage_duration_seconds",
    "model invocation duration per stage in seconds",
    ["stage"],
    buckets=[0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 90.0],
)

item_duration_seconds = Histogram(
    "idcard_item_duration_seconds",
    "full pipeline duration per image in seconds",
    buckets=[1.0, 5.0, 10.0, 30.0, 60.0, 120.0, 180.0],
)

# gauges
active_batches = Gauge(
    "idcard_active_batches", "number of batches currently being processed"
)


def metrics_endpoint() -> Response:
    """prometheus metrics endpoint"""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


def record_stage(stage: str, status: str, duration: float) -> None:
    """record single stage invocation"""
    stage_invocations_total.labels(stage=stage, status=status).inc()
    stage_duration_seconds.labels(stage=stage).observe(duration)


def record_item(status: str, duration: float) -> None:
    """record finished image"""
    items_total.labels(status=status).inc()
    item_duration_seconds.observe(duration)


def record_field_reading(outcome: str) -> None:
    """record field reading outcome: read, empty or failed"""
    field_readings_total.labels(outcome=outcome).inc()


def record_crop_failure(reason: str) -> None:
    """record field crop failure"""
    crop_failures_total.labels(reason=reason).inc()
