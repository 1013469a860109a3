"""
gaugekit is the identity, registration and lazy-sampling core of an
instrumentation library.

Modules:
- gaugekit.meter: MeterId, Tags, ValueSource, Gauge and its builder
- gaugekit.registry: MeterRegistry with first-wins deduplication and filters
- gaugekit.opentelemetry: publish gauges as OpenTelemetry observable gauges
- gaugekit.config / gaugekit.service: configuration driven installation
"""

from gaugekit.__version__ import __version__
from gaugekit.meter import Gauge, MeterId, MeterType, Statistic, Tag, Tags
from gaugekit.registry import MeterFilter, MeterRegistry, SimpleMeterRegistry

__all__ = [
    "__version__",
    "Gauge",
    "MeterId",
    "MeterType",
    "Statistic",
    "Tag",
    "Tags",
    "MeterFilter",
    "MeterRegistry",
    "SimpleMeterRegistry",
]
