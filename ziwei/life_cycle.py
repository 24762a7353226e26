"""
Life-cycle engine.

Handles:
- Twelve decade-long major cycles (大限) from the Ming palace
- Twelve life stages (長生十二神) from the loci-dependent start palace
- Which major cycle covers a given nominal age

Both sequences advance in the chart's rotation direction
(see ziwei.basics.is_clockwise).
"""

from dataclasses import dataclass
from typing import Optional

from ziwei.basics import is_clockwise

LIFE_STAGES = ["長生", "沐浴", "冠帶", "臨官", "帝旺", "衰",
               "病", "死", "墓", "絕", "胎", "養"]

# 長生 palace by loci: 水二 申, 木三 亥, 金四 巳, 土五 申, 火六 寅
LIFE_STAGE_START = {2: 8, 3: 11, 4: 5, 5: 8, 6: 2}

CYCLE_COUNT = 12
CYCLE_YEARS = 10


@dataclass(frozen=True)
class MajorCycle:
    start_age: int
    end_age: int
    palace_index: int
    cycle_index: int

    @property
    def age_range(self) -> str:
        return f"{self.start_age}-{self.end_age}"

    def covers(self, age: int) -> bool:
        return self.start_age <= age <= self.end_age

    def to_dict(self):
        return {
            "startAge": self.start_age,
            "endAge": self.end_age,
            "ageRange": self.age_range,
            "palaceIndex": self.palace_index,
            "cycleIndex": self.cycle_index,
        }


def _check_loci(loci: int):
    if loci not in LIFE_STAGE_START:
        raise ValueError(f"Loci must be one of {sorted(LIFE_STAGE_START)}, got {loci!r}")


def major_cycles(loci: int, gender: str, lunar_year: int, ming_index: int) -> list[MajorCycle]:
    """
    Twelve ten-year cycles, the first starting at age = loci in the Ming palace.
    """
    _check_loci(loci)
    step = 1 if is_clockwise(gender, lunar_year) else -1
    cycles = []
    for i in range(CYCLE_COUNT):
        start = loci + i * CYCLE_YEARS
        cycles.append(MajorCycle(
            start_age=start,
            end_age=start + CYCLE_YEARS - 1,
            palace_index=(ming_index + step * i) % 12,
            cycle_index=i,
        ))
    return cycles


def life_stage_positions(loci: int, gender: str, lunar_year: int) -> dict:
    """Palace index -> life-stage label."""
    _check_loci(loci)
    step = 1 if is_clockwise(gender, lunar_year) else -1
    start = LIFE_STAGE_START[loci]
    return {(start + step * i) % 12: stage for i, stage in enumerate(LIFE_STAGES)}


def cycle_for_age(cycles: list[MajorCycle], age: int) -> Optional[MajorCycle]:
    for cycle in cycles:
        if cycle.covers(age):
            return cycle
    return None


def compute_life_cycles(loci: int, gender: str, lunar_year: int, ming_index: int) -> dict:
    return {
        "major": [cycle.to_dict() for cycle in major_cycles(loci, gender, lunar_year, ming_index)],
        "twelveLongLife": life_stage_positions(loci, gender, lunar_year),
    }
