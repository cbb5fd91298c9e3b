"""Shared domain models for deploypipe."""

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from .errors import DeployError

STAGE_ORDER = (
    "prerequisites",
    "dependencies",
    "tests",
    "build",
    "backup",
    "activation",
    "notify",
)


class StageOutcome(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    SKIPPED = "skipped"


class ProbeOutcome(str, Enum):
    READY = "ready"
    NOT_READY = "not_ready"
    TRANSPORT_ERROR = "transport_error"


@dataclass(frozen=True)
class EnvironmentConfig:
    """Deployment target selected for one run."""

    name: str
    target_url: str
    required_branch: str


@dataclass(frozen=True)
class PipelineFlags:
    skip_tests: bool = False
    skip_build: bool = False
    verbose: bool = False


@dataclass(frozen=True)
class StageResult:
    stage_name: str
    outcome: StageOutcome
    duration_ms: int
    detail: str = ""


@dataclass(frozen=True)
class HealthCheckAttempt:
    number: int
    timestamp: str
    outcome: ProbeOutcome
    status_code: Optional[int] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class BuildEnvironment:
    """Variables handed to child processes instead of mutating os.environ."""

    mode: str

    def as_env(self) -> Dict[str, str]:
        return {"NODE_ENV": self.mode, "BUILD_ENV": self.mode}


@dataclass(frozen=True)
class ProcessManagerApp:
    name: str
    script: str
    env: Dict[str, object]

    def as_dict(self) -> Dict[str, object]:
        return {"name": self.name, "script": self.script, "env": dict(self.env)}


@dataclass
class PipelineRun:
    """State of a single deployment invocation. Never persisted."""

    environment: EnvironmentConfig
    flags: PipelineFlags
    started_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    stage_results: List[StageResult] = field(default_factory=list)
    failure: Optional[str] = None
    _started_monotonic: float = field(default_factory=time.monotonic, repr=False)

    def record(self, result: StageResult):
        if result.stage_name not in STAGE_ORDER:
            raise DeployError(f"Unknown stage: {result.stage_name}")
        if self.stage_results:
            previous = self.stage_results[-1].stage_name
            if STAGE_ORDER.index(result.stage_name) <= STAGE_ORDER.index(previous):
                raise DeployError(
                    f"Stage '{result.stage_name}' cannot run after '{previous}' in this run."
                )
        self.stage_results.append(result)

    def result_for(self, stage_name: str) -> Optional[StageResult]:
        for result in self.stage_results:
            if result.stage_name == stage_name:
                return result
        return None

    def mark_failed(self, error: str):
        self.failure = error

    @property
    def outcome(self) -> StageOutcome:
        if self.failure is not None:
            return StageOutcome.FAILURE
        # notification failures never fail a run
        for result in self.stage_results:
            if result.stage_name != "notify" and result.outcome is StageOutcome.FAILURE:
                return StageOutcome.FAILURE
        return StageOutcome.SUCCESS

    @property
    def duration_seconds(self) -> float:
        return time.monotonic() - self._started_monotonic
