"""Outcome models for image resolution and export."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from layerscan.models.common import ErrorDetail, ResultStatus
from layerscan.models.image import ExportResult, ImageIdentifier


class ResolveState(str, Enum):
    """States of the local-first, pull-on-miss resolution protocol."""

    INSPECT_REPO = "InspectRepo"
    PULL = "Pull"
    REINSPECT_REPO = "ReinspectRepo"
    REINSPECT_FULL = "ReinspectFull"
    FOUND = "Found"
    FAILED = "Failed"


class ResolveTransition(BaseModel):
    """A recorded move between two resolver states."""

    model_config = {"frozen": True}

    source: ResolveState
    target: ResolveState
    reason: str


class ResolveResult(BaseModel):
    """Result of resolving an image reference against the engine."""

    reference: str = Field(description="Reference as given by the caller")
    pull_reference: str = Field(description="Reference used for pulling, with :latest if needed")
    identifier: ImageIdentifier
    state: ResolveState = Field(description="Terminal state, Found or Failed")
    status: ResultStatus
    inspect_data: dict[str, Any] | None = Field(default=None, description="Engine inspect response")
    transitions: list[ResolveTransition] = Field(default_factory=list)
    errors: list[ErrorDetail] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.status == ResultStatus.FOUND

    @property
    def pulled(self) -> bool:
        """Whether the protocol reached the pull step."""
        return any(t.target == ResolveState.PULL for t in self.transitions)


class ExportOutcome(BaseModel):
    """Result of exporting an image, with the failure reason when it did not work."""

    reference: str
    status: ResultStatus
    result: ExportResult | None = None
    resolution: ResolveResult | None = None
    errors: list[ErrorDetail] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.status == ResultStatus.FOUND and self.result is not None
