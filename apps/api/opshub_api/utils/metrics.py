"""Prometheus metrics."""

from prometheus_client import Counter, Histogram

# Action metrics
ops_actions = Counter(
    "opshub_actions_total",
    "Total operator actions",
    ["action", "outcome"],
)

# Attestation metrics
attestations_total = Counter(
    "opshub_attestations_total",
    "Attestation attempts by outcome",
    ["kind", "outcome"],
)

attestation_duration = Histogram(
    "opshub_attestation_duration_seconds",
    "Attestation round-trip duration",
    ["kind"],
)

anchor_attach_failures = Counter(
    "opshub_anchor_attach_failures_total",
    "Failed writes of an anchor hash back onto an entity",
    ["entity"],
)

audit_write_failures = Counter(
    "opshub_audit_write_failures_total",
    "Failed activity log writes",
    ["event_type"],
)

# Auth metrics
auth_failures = Counter(
    "opshub_auth_failures_total",
    "Rejected bearer credentials",
)
