"""
Prometheus metrics collection.
"""

from prometheus_client import Counter, Gauge, Histogram

# ============================================================
# HTTP Metrics
# ============================================================

http_requests_total = Counter(
    "frappeur_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "frappeur_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# ============================================================
# Blockchain Metrics
# ============================================================

rpc_connect_total = Counter(
    "frappeur_rpc_connect_total",
    "RPC endpoint connection attempts",
    ["endpoint", "result"],
)

mint_attempts_total = Counter(
    "frappeur_mint_attempts_total",
    "Mint submission attempts by outcome",
    ["outcome"],
)

mint_confirmation_seconds = Histogram(
    "frappeur_mint_confirmation_seconds",
    "Time from first submission to confirmation",
    buckets=(1.0, 2.5, 5.0, 10.0, 20.0, 30.0, 60.0, 90.0, 180.0, 300.0),
)

leaf_index_resolutions_total = Counter(
    "frappeur_leaf_index_resolutions_total",
    "Leaf index resolutions by method",
    ["method"],
)

# ============================================================
# Operation Metrics
# ============================================================

mint_operations_total = Counter(
    "frappeur_mint_operations_total",
    "Mint operations by final status",
    ["type", "status"],
)

mint_operations_in_flight = Gauge(
    "frappeur_mint_operations_in_flight",
    "Mint operations currently processing",
)

# ============================================================
# Indexing Metrics
# ============================================================

indexing_jobs_active = Gauge(
    "frappeur_indexing_jobs_active",
    "Indexing monitor jobs currently polling",
)

indexing_jobs_total = Counter(
    "frappeur_indexing_jobs_total",
    "Indexing monitor jobs by terminal status",
    ["status"],
)

indexing_duration_seconds = Histogram(
    "frappeur_indexing_duration_seconds",
    "Time until an asset became visible in the read-index",
    buckets=(30.0, 60.0, 120.0, 300.0, 600.0, 900.0, 1200.0, 1800.0),
)

# ============================================================
# Webhook Metrics
# ============================================================

webhook_deliveries_total = Counter(
    "frappeur_webhook_deliveries_total",
    "Webhook deliveries by event and result",
    ["event", "result"],
)
