from __future__ import annotations

from dataclasses import asdict, dataclass, field


@dataclass
class JobSummary:
    job: str
    processed: int = 0
    failed: int = 0
    details: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return asdict(self)
