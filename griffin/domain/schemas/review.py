"""Pydantic schemas for review jobs, review results and code explanations."""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import ConfigDict, Field

from griffin.domain.models.review_job import TERMINAL_STATUSES, JobStatus
from griffin.domain.schemas.auth import CamelModel


class ReviewSubmission(CamelModel):
    code: Optional[str] = None
    language: Optional[str] = None
    filename: Optional[str] = None
    priority: Optional[int] = None


class SubmissionAccepted(CamelModel):
    job_id: str
    status: JobStatus
    estimated_time: int
    warnings: List[str] = []


class JobRead(CamelModel):
    """Snapshot of a review job as seen through the API."""

    model_config = ConfigDict(from_attributes=True)

    job_id: str
    status: JobStatus
    progress: int = 0
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    language: Optional[str] = None
    filename: Optional[str] = None
    processing_time: Optional[int] = None
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class JobPage(CamelModel):
    jobs: List[JobRead]
    total: int
    page: int
    total_pages: int


class JobStats(CamelModel):
    total: int = 0
    pending: int = 0
    processing: int = 0
    completed: int = 0
    failed: int = 0


# --- Review result (what the AI reviewer must return) ---

class BestPractice(CamelModel):
    category: str = "Code Quality"
    message: str
    severity: Literal["info", "warning", "error"] = "info"
    line_number: Optional[int] = None


class Refactoring(CamelModel):
    suggestion: str
    impact: Literal["low", "medium", "high"] = "medium"
    line_number: Optional[int] = None
    original_code: Optional[str] = None
    suggested_code: Optional[str] = None


class Vulnerability(CamelModel):
    type: str
    severity: Literal["low", "medium", "high", "critical"] = "medium"
    description: str
    line_number: Optional[int] = None
    cwe: Optional[str] = None


class PerformanceIssue(CamelModel):
    issue: str
    impact: Literal["low", "medium", "high"] = "medium"
    suggestion: str = ""
    line_number: Optional[int] = None


class MaintainabilityIssue(CamelModel):
    type: str
    description: str
    line_number: Optional[int] = None


class Maintainability(CamelModel):
    score: int = Field(default=70, ge=0, le=100)
    issues: List[MaintainabilityIssue] = []


class Complexity(CamelModel):
    cyclomatic_complexity: Optional[int] = None
    cognitive_complexity: Optional[int] = None
    suggestions: List[str] = []


class Documentation(CamelModel):
    coverage_score: int = Field(default=50, ge=0, le=100)
    suggestions: List[str] = []


class Testing(CamelModel):
    recommendations: List[str] = []
    coverage_analysis: str = "No testing analysis provided"


class ReviewResult(CamelModel):
    summary: str = "Code analysis completed"
    best_practices: List[BestPractice] = []
    refactoring: List[Refactoring] = []
    vulnerabilities: List[Vulnerability] = []
    performance: List[PerformanceIssue] = []
    maintainability: Maintainability = Maintainability()
    complexity: Complexity = Complexity()
    documentation: Documentation = Documentation()
    testing: Testing = Testing()


# --- Explain ---

class ExplainRequest(CamelModel):
    code: str = Field(min_length=1)
    language: str = Field(min_length=1)
    level: Literal["beginner", "intermediate", "advanced"] = "intermediate"
    focus: Optional[str] = None
