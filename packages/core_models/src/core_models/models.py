from pydantic import BaseModel, Field, ConfigDict, model_validator
from typing import List, Optional, Literal, Tuple


class PathStep(BaseModel):
    """One prior drill-down selection."""
    id: str = Field(min_length=1)
    label: str = Field(min_length=1)
    model_config = ConfigDict(frozen=True, extra="forbid")


class NavigationRequest(BaseModel):
    """Canonical, immutable request produced by the sanitizer."""
    domain: str
    path: Tuple[PathStep, ...] = ()
    max_options: int = Field(ge=1)
    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def depth(self) -> int:
        """Navigation depth of the options being requested (root is 1)."""
        return len(self.path) + 1

    @property
    def path_ids(self) -> List[str]:
        return [p.id for p in self.path]

    @property
    def path_labels(self) -> List[str]:
        return [p.label for p in self.path]


class Option(BaseModel):
    id: str
    label: str
    description: str = ""
    split_dimension: str = "N/A"
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    model_config = ConfigDict(frozen=True, extra="forbid")


class Bucket(BaseModel):
    label: str
    option_ids: List[str] = Field(min_length=1)
    model_config = ConfigDict(frozen=True, extra="forbid")


class StepInfo(BaseModel):
    level0: str
    path_labels: List[str] = Field(default_factory=list)
    model_config = ConfigDict(frozen=True, extra="forbid")


class ResultMeta(BaseModel):
    cache_hit: bool
    requested_max: int
    returned_count: int
    latency_ms: int
    build: str
    request_id: Optional[str] = None
    model_config = ConfigDict(frozen=True, extra="forbid")


class OptionsResult(BaseModel):
    """
    Result returned for one navigation request.

    The structural invariants (unique option ids, non-empty buckets whose ids
    all reference returned options) are enforced on construction, so an
    instance that exists is safe to hand to a caller.  ``meta`` is attached
    per response by the orchestrator and is never part of the cached value.
    """
    mode: Literal["llm", "stub"]
    step: StepInfo
    options: List[Option]
    buckets: List[Bucket]
    can_confirm_here: bool = False
    confirm_reason: str = ""
    warnings: List[str] = Field(default_factory=list)
    meta: Optional[ResultMeta] = None
    model_config = ConfigDict(frozen=True, extra="forbid")

    @model_validator(mode="after")
    def _check_invariants(self):
        ids = [o.id for o in self.options]
        if len(set(ids)) != len(ids):
            raise ValueError("option ids must be unique")
        if not self.buckets:
            raise ValueError("buckets must not be empty")
        known = set(ids)
        for b in self.buckets:
            missing = [i for i in b.option_ids if i not in known]
            if missing:
                raise ValueError(f"bucket {b.label!r} references unknown option ids: {missing}")
        return self

    @property
    def option_ids(self) -> List[str]:
        return [o.id for o in self.options]

    def with_meta(self, meta: ResultMeta, step: Optional[StepInfo] = None) -> "OptionsResult":
        """Per-response copy; *step* replaces the cached one when given."""
        update: dict = {"meta": meta}
        if step is not None:
            update["step"] = step
        return self.model_copy(update=update)
