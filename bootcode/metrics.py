from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List

import psutil


def get_rss_bytes() -> int:
    return int(psutil.Process().memory_info().rss)


@dataclass
class Metrics:
    total_ms: float = 0.0
    runs: int = 0
    total_steps: int = 0
    timeline: List[Dict[str, Any]] = field(default_factory=list)
    rss_samples: List[int] = field(default_factory=list)

    def add_timeline_point(self, **row):
        self.timeline.append(row)

    def record_run(self, steps: int, dt_ms: float) -> None:
        self.runs += 1
        self.total_steps += int(steps)
        self.total_ms += float(dt_ms)

    def sample_rss(self) -> None:
        self.rss_samples.append(get_rss_bytes())

    def steps_per_second(self) -> float:
        if self.total_ms <= 0:
            return 0.0
        return float(self.total_steps) / (self.total_ms / 1000.0)

    def rss_summary(self) -> Dict[str, int]:
        if not self.rss_samples:
            return {"min": 0, "max": 0, "avg": 0}
        return {
            "min": min(self.rss_samples),
            "max": max(self.rss_samples),
            "avg": sum(self.rss_samples) // len(self.rss_samples),
        }

    def to_row(self) -> Dict[str, Any]:
        s = self.rss_summary()
        return {
            "total_ms": round(self.total_ms, 3),
            "runs": self.runs,
            "total_steps": self.total_steps,
            "steps_per_s": round(self.steps_per_second(), 2),
            "rss_min": s["min"],
            "rss_max": s["max"],
            "rss_avg": s["avg"],
            "timeline_len": len(self.timeline),
        }
