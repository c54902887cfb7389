"""Core data model shared by the stages, the scheduler and the handlers.

Models use snake_case attributes and dump with camelCase aliases
(``model_dump(by_alias=True)``), which is the shape used for notification
payloads and persisted assistant messages.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


def new_id() -> str:
    return str(uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Base model accepting both snake_case names and camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class StepStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


class ExecutionStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class Thought(CamelModel):
    """Free-form reasoning about what the user wants."""

    reasoning: str = Field(min_length=1)
    considerations: List[str] = Field(default_factory=list)
    assumptions: List[str] = Field(default_factory=list)


class PlanStep(CamelModel):
    """One unit of work. ``dependencies`` hold order values, not ids."""

    id: str = Field(default_factory=new_id)
    order: int = Field(ge=1)
    description: str = Field(min_length=1)
    tool: Optional[str] = None
    parameters: Optional[Dict[str, Any]] = None
    dependencies: List[int] = Field(default_factory=list)

    @property
    def is_manual(self) -> bool:
        return not self.tool


class Plan(CamelModel):
    """Ordered, dependency-annotated set of steps."""

    id: str = Field(default_factory=new_id)
    steps: List[PlanStep] = Field(min_length=1)
    required_tools: List[str] = Field(default_factory=list)
    confidence: float = Field(default=0.7, ge=0.0, le=1.0)
    reasoning: Optional[str] = None
    estimated_duration: Optional[int] = None

    @model_validator(mode="after")
    def _orders_unique(self) -> "Plan":
        orders = [step.order for step in self.steps]
        if len(orders) != len(set(orders)):
            raise ValueError(f"step orders must be unique within a plan: {orders}")
        return self

    def step_by_order(self, order: int) -> Optional[PlanStep]:
        for step in self.steps:
            if step.order == order:
                return step
        return None

    def step_by_id(self, step_id: str) -> Optional[PlanStep]:
        for step in self.steps:
            if step.id == step_id:
                return step
        return None


class ExecutionStep(CamelModel):
    """Runtime record for one PlanStep."""

    plan_step_id: str
    status: StepStatus = StepStatus.PENDING
    result: Any = None
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class Execution(CamelModel):
    """The result of scheduling a Plan once."""

    id: str = Field(default_factory=new_id)
    plan: Plan
    status: ExecutionStatus = ExecutionStatus.PENDING
    steps: List[ExecutionStep] = Field(default_factory=list)
    results: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    started_at: datetime = Field(default_factory=utcnow)
    completed_at: Optional[datetime] = None

    @classmethod
    def for_plan(cls, plan: Plan) -> "Execution":
        return cls(
            plan=plan,
            status=ExecutionStatus.RUNNING,
            steps=[ExecutionStep(plan_step_id=step.id) for step in plan.steps],
        )

    def steps_with_status(self, *statuses: StepStatus) -> List[ExecutionStep]:
        return [step for step in self.steps if step.status in statuses]

    @property
    def has_failures(self) -> bool:
        return any(step.status == StepStatus.FAILED for step in self.steps)


class Reflection(CamelModel):
    """Post-hoc judgement of an Execution."""

    success: bool
    analysis: str
    issues: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    should_iterate: bool = False
    next_steps: Optional[List[str]] = None


class Message(CamelModel):
    """One conversation message."""

    id: str = Field(default_factory=new_id)
    role: Literal["user", "assistant", "system"]
    content: str
    timestamp: datetime = Field(default_factory=utcnow)


class ConversationContext(CamelModel):
    """Conversation history for a session."""

    session_id: str
    messages: List[Message] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    def recent(self, count: int) -> List[Message]:
        return self.messages[-count:] if count > 0 else []


class IterationRecord(CamelModel):
    """One execute/reflect round of the orchestrator."""

    iteration: int
    execution: Execution
    reflection: Reflection


class ModeSelection(CamelModel):
    mode: Literal["ask", "plan", "agent"]
    confidence: float
    reasoning: str


class AskResponse(CamelModel):
    session_id: str
    response: str
    model: str
    tokens_used: Optional[int] = None


class PlanResponse(CamelModel):
    session_id: str
    thought: Thought
    plan: Plan
    warnings: List[str] = Field(default_factory=list)


class ExecutionResponse(CamelModel):
    session_id: str
    thought: Thought
    plan: Plan
    execution: Execution
    reflection: Reflection
    iterations: int
