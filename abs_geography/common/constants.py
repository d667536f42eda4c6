"""Application constants."""

USER_AGENT = "abs-geography/1.0 (+statistics proxy)"
SUBSYSTEMS = (
    "concordance",
    "boundaries",
    "centroids",
)
DATASETS = (
    "concordance",
    "boundaries",
)
EARTH_RADIUS_KM = 6371.0
SECONDS_PER_DAY = 86400
EXIT_SUCCESS = 0
EXIT_PARTIAL = 10
EXIT_HARD_FAIL = 20
JSON_LOG_FIELDS = (
    "timestamp",
    "run_id",
    "component",
    "dataset",
    "event",
    "status",
    "tier",
    "age_seconds",
    "rows_in",
    "rows_out",
    "error_code",
    "message",
)
