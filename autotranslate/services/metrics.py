"""Prometheus metrics for the auto-translation dispatch path.

Metrics exported:
- autotranslate_units_dispatched_total: Translation units handed to a provider
- autotranslate_units_persisted_total: Units whose translations were stored
- autotranslate_unit_failures_total: Units that failed (provider or storage error)

A unit is either a message body or one attachment (label ``unit``).

Usage:
    from autotranslate.services.metrics import units_dispatched

    units_dispatched.labels(unit='body').inc()
"""

from prometheus_client import Counter

units_dispatched = Counter(
    'autotranslate_units_dispatched_total',
    'Translation units handed to a provider',
    labelnames=['unit']  # unit: body, attachment
)

units_persisted = Counter(
    'autotranslate_units_persisted_total',
    'Translation units whose result was persisted',
    labelnames=['unit']
)

unit_failures = Counter(
    'autotranslate_unit_failures_total',
    'Translation units that failed',
    labelnames=['unit']
)
