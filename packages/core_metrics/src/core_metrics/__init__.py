"""
core_metrics – tiny helpers so services can record counters / histograms
by name without declaring collectors up front. Collectors live in the
default Prometheus registry and are created on first use; label names are
fixed by the attributes passed on that first call.
"""

from __future__ import annotations

import threading
from typing import Any, Dict, Tuple

from prometheus_client import (
    REGISTRY as _PROM_REGISTRY,
    Counter as _pCounter,
    Histogram as _pHistogram,
    Gauge as _pGauge,
)

_P_COUNTERS: Dict[str, Tuple[_pCounter, Tuple[str, ...]]] = {}
_P_HISTOS: Dict[str, Tuple[_pHistogram, Tuple[str, ...]]] = {}
_P_GAUGES: Dict[str, _pGauge] = {}
_LOCK = threading.Lock()


def _existing(name: str):
    # Re-use collectors registered by an earlier import (e.g. test reloads).
    return _PROM_REGISTRY._names_to_collectors.get(name)  # type: ignore[attr-defined]


def _labelled(collector, labelnames: Tuple[str, ...], attrs: Dict[str, Any]):
    if not labelnames:
        return collector
    return collector.labels(**{k: str(attrs.get(k, "")) for k in labelnames})


def counter(name: str, inc: int | float = 1, **attrs: Any) -> None:
    """Increment *name* by *inc* (default 1)."""
    with _LOCK:
        entry = _P_COUNTERS.get(name)
        if entry is None:
            labelnames = tuple(sorted(attrs))
            pc = _existing(name) or _pCounter(name, f"Counter for {name}", labelnames)
            entry = (pc, tuple(getattr(pc, "_labelnames", labelnames)))
            _P_COUNTERS[name] = entry
    pc, labelnames = entry
    try:
        _labelled(pc, labelnames, attrs).inc(inc)
    except ValueError:
        # Metrics must never break the request path
        pass


def histogram(name: str, value: float, **attrs: Any) -> None:
    """Record *value* in histogram *name*."""
    with _LOCK:
        entry = _P_HISTOS.get(name)
        if entry is None:
            labelnames = tuple(sorted(attrs))
            ph = _existing(name) or _pHistogram(name, f"Histogram for {name}", labelnames)
            entry = (ph, tuple(getattr(ph, "_labelnames", labelnames)))
            _P_HISTOS[name] = entry
    ph, labelnames = entry
    try:
        _labelled(ph, labelnames, attrs).observe(value)
    except ValueError:
        pass


def gauge(name: str, value: float) -> None:
    """Set the unlabelled gauge *name* to *value*."""
    with _LOCK:
        g = _P_GAUGES.get(name)
        if g is None:
            g = _existing(name) or _pGauge(name, f"Gauge for {name}")
            _P_GAUGES[name] = g
    g.set(value)


__all__ = ["counter", "histogram", "gauge"]
