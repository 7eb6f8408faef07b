"""Run manifest for reproducibility."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Optional
import uuid


@dataclass
class RunManifest:
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None
    git_sha: Optional[str] = None
    config_hash: Optional[str] = None
    policy: Optional[str] = None
    counts: Dict[str, int] = field(default_factory=dict)
    outputs: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "run_id": self.run_id,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "git_sha": self.git_sha,
            "config_hash": self.config_hash,
            "policy": self.policy,
            "counts": dict(self.counts),
            "outputs": dict(self.outputs),
        }
