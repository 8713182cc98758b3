"""OpenTelemetry メトリクス定義"""

from __future__ import annotations

from opentelemetry import metrics

_meter = metrics.get_meter("k1s0_cognito", version="0.1.0")

jwks_resolutions_total = _meter.create_counter(
    name="jwks_resolutions_total",
    description="Total number of JWKS key set resolutions by result",
    unit="1",
)

token_verifications_total = _meter.create_counter(
    name="token_verifications_total",
    description="Total number of token verifications by result",
    unit="1",
)
