"""
Transformation Log - Ordered record of what one analysis run did.

Created fresh per run and returned with the result, so a run can be
replayed step by step when an import looks wrong.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, List, Optional


@dataclass(frozen=True)
class TransformationStep:
    step: str
    description: str
    timestamp: datetime
    data: Any = None

    def to_dict(self) -> dict:
        return {
            "step": self.step,
            "description": self.description,
            "timestamp": self.timestamp,
            "data": self.data,
        }


@dataclass
class TransformationLog:
    """Append-only step log with an injectable clock."""
    clock: Callable[[], datetime] = datetime.now
    entries: List[TransformationStep] = field(default_factory=list)

    def record(self, step: str, description: str, data: Optional[Any] = None) -> TransformationStep:
        entry = TransformationStep(step, description, self.clock(), data)
        self.entries.append(entry)
        return entry

    def steps(self, name: str) -> List[TransformationStep]:
        """All entries recorded under a step name."""
        return [e for e in self.entries if e.step == name]

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def to_list(self) -> List[dict]:
        return [e.to_dict() for e in self.entries]
