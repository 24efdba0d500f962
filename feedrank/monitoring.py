"""
Health monitor for the ranking engine.

Tracks calculation latency (last 1000 samples), cache hit rate, error rate,
diversity, drift rate and quality-gate pass rate (both exponential moving
averages) and stampede incidents. check_thresholds() turns them into alerts.
"""

import logging
from collections import deque
from typing import Deque, Dict, List

import numpy as np

logger = logging.getLogger(__name__)

MAX_SAMPLES = 1000
EMA_ALPHA = 0.1

SLOW_AVG_MS = 500.0
MIN_CACHE_HIT_RATE = 0.7
MAX_DRIFT_RATE = 0.2
MAX_STAMPEDES = 10
MIN_QUALITY_RATE = 0.8
MIN_DIVERSITY = 0.3
MAX_ERROR_RATE = 0.05


class HealthMonitor:
    def __init__(self):
        self._times: Deque[float] = deque(maxlen=MAX_SAMPLES)
        self.reset()
        self.diversity_score = 0.0
        self.drift_rate = 0.0
        self.quality_rate = 1.0
        self.stampede_count = 0

    def record_calculation_time(self, ms: float) -> None:
        self._times.append(ms)

    def record_cache_access(self, hit: bool) -> None:
        if hit:
            self.cache_hits += 1
        else:
            self.cache_misses += 1

    def record_success(self) -> None:
        self.requests += 1

    def record_error(self) -> None:
        self.requests += 1
        self.errors += 1

    def record_diversity_score(self, score: float) -> None:
        self.diversity_score = score

    def record_drift_detection(self, drifted: bool) -> None:
        self.drift_rate = EMA_ALPHA * (1.0 if drifted else 0.0) + (1 - EMA_ALPHA) * self.drift_rate

    def record_quality_filter(self, passed: bool) -> None:
        self.quality_rate = EMA_ALPHA * (1.0 if passed else 0.0) + (1 - EMA_ALPHA) * self.quality_rate

    def record_stampede(self) -> None:
        self.stampede_count += 1

    def reset_stampede_count(self) -> None:
        self.stampede_count = 0

    def reset(self) -> None:
        """Clear counters and latency samples (EMAs and stampede count are kept)."""
        self._times.clear()
        self.cache_hits = 0
        self.cache_misses = 0
        self.requests = 0
        self.errors = 0

    def metrics(self) -> Dict[str, float]:
        if self._times:
            samples = np.sort(np.array(self._times, dtype=float))
            avg = float(samples.mean())
            p95 = float(samples[min(int(len(samples) * 0.95), len(samples) - 1)])
            p99 = float(samples[min(int(len(samples) * 0.99), len(samples) - 1)])
        else:
            avg = p95 = p99 = 0.0
        accesses = self.cache_hits + self.cache_misses
        return {
            "avg_calculation_ms": avg,
            "p95_calculation_ms": p95,
            "p99_calculation_ms": p99,
            "cache_hit_rate": self.cache_hits / accesses if accesses else 0.0,
            "error_rate": self.errors / self.requests if self.requests else 0.0,
            "diversity_score": self.diversity_score,
            "drift_detection_rate": self.drift_rate,
            "stampede_count": self.stampede_count,
            "quality_filter_rate": self.quality_rate,
        }

    def check_thresholds(self) -> List[str]:
        """Alert strings for every metric outside its healthy range; logged as warnings."""
        m = self.metrics()
        alerts = []
        if m["avg_calculation_ms"] > SLOW_AVG_MS:
            alerts.append(f"SLOW: avg {m['avg_calculation_ms']:.0f}ms (threshold {SLOW_AVG_MS:.0f}ms)")
        if m["cache_hit_rate"] < MIN_CACHE_HIT_RATE:
            alerts.append(f"LOW CACHE: {m['cache_hit_rate'] * 100:.1f}% hit rate")
        if m["drift_detection_rate"] > MAX_DRIFT_RATE:
            alerts.append(f"HIGH DRIFT: {m['drift_detection_rate'] * 100:.1f}% users drifting")
        if m["stampede_count"] > MAX_STAMPEDES:
            alerts.append(f"STAMPEDE WARNING: {m['stampede_count']} incidents")
        if m["quality_filter_rate"] < MIN_QUALITY_RATE:
            alerts.append(f"LOW QUALITY: {m['quality_filter_rate'] * 100:.1f}% pass rate")
        if m["diversity_score"] < MIN_DIVERSITY:
            alerts.append(f"ECHO CHAMBER: diversity {m['diversity_score'] * 100:.1f}%")
        if m["error_rate"] > MAX_ERROR_RATE:
            alerts.append(f"HIGH ERROR RATE: {m['error_rate'] * 100:.1f}%")
        for alert in alerts:
            logger.warning("[health] ALERT %s", alert)
        return alerts
