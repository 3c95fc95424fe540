"""Pydantic models for analysis requests and results."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from devpilot.errors import DevPilotError


class AnalysisType(str, Enum):
    """Task categories offered to the user."""

    EXPLAIN = "Explain Code"
    FIND_BUGS = "Find Bugs"
    REFACTOR = "Refactor Code"
    ADD_COMMENTS = "Add Comments"
    UNIT_TESTS = "Generate Unit Tests"


ANALYSIS_TYPES: list[str] = [t.value for t in AnalysisType]


class AnalysisRequest(BaseModel):
    """One unit of work for the pipeline."""

    code: str
    analysis_type: str = AnalysisType.EXPLAIN.value
    model: str


class AnalysisResult(BaseModel):
    """Outcome of a single ``run_analysis`` call.

    ``html`` is always displayable: the model's answer on success, an error
    payload otherwise.  ``error`` holds the exception that ended the request
    and is excluded from serialization.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    request: AnalysisRequest
    raw_response_body: str = ""
    extracted_content: str = ""
    succeeded: bool = False
    error_detail: str | None = None
    error: DevPilotError | None = Field(default=None, exclude=True)
    html: str = ""
