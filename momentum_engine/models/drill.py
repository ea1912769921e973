"""
Drill domain model.

A drill session presents exactly three scenarios for one artifact. Each
scenario has four options tagged negative / helpful / optimal; only optimal
answers score.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Literal, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field

AnswerCategory = Literal["negative", "helpful", "optimal"]
ScenarioSourceKind = Literal["persisted", "built_in"]
NoMomentumReason = Literal["daily_cap", "daily_code_limit"]

SCENARIOS_PER_SESSION = 3
OPTIONS_PER_SCENARIO = 4


class DrillOption(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    category: AnswerCategory
    feedback: str = ""


class DrillScenario(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    artifact_id: str
    owner_id: Optional[str] = None
    situation: str
    current_thought: str
    options: Tuple[DrillOption, ...] = Field(..., min_length=OPTIONS_PER_SCENARIO, max_length=OPTIONS_PER_SCENARIO)


class ScenarioSource(BaseModel):
    """Where a session's scenarios came from.

    persisted: scenario ids reference stored rows.
    built_in: scenarios came from the onboarding catalog under catalog_key;
    no scenario rows exist.
    """
    model_config = ConfigDict(frozen=True)

    kind: ScenarioSourceKind
    catalog_key: Optional[str] = None

    @classmethod
    def persisted(cls) -> "ScenarioSource":
        return cls(kind="persisted")

    @classmethod
    def built_in(cls, catalog_key: str) -> "ScenarioSource":
        return cls(kind="built_in", catalog_key=catalog_key)


class DrillSubmission(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: str
    artifact_id: str
    scenario_ids: List[str]
    answers: List[int]
    session_id: Optional[str] = None
    is_first_play: bool = False


class DrillSession(BaseModel):
    """Stored session row. Written once, never mutated."""
    model_config = ConfigDict(frozen=True)

    session_id: str
    user_id: str
    artifact_id: str
    scenario_ids: List[str] = Field(default_factory=list)
    source: ScenarioSource
    answers: List[int]
    score: int
    momentum_awarded: int = 0
    is_first_play: bool = False
    play_day: date
    play_number: int
    previous_momentum: float
    new_momentum: float
    milestone: Optional[int] = None
    no_momentum_reason: Optional[NoMomentumReason] = None
    created_at: datetime

    def to_result(self, *, replayed: bool = False) -> "DrillSessionResult":
        return DrillSessionResult(
            session_id=self.session_id,
            score=self.score,
            total_questions=SCENARIOS_PER_SESSION,
            momentum_awarded=self.momentum_awarded,
            previous_momentum=self.previous_momentum,
            new_momentum=self.new_momentum,
            milestone=self.milestone,
            no_momentum_reason=self.no_momentum_reason,
            is_first_play=self.is_first_play,
            replayed=replayed,
        )

    def to_dict(self) -> dict:
        return {
            "sessionId": self.session_id,
            "artifactId": self.artifact_id,
            "scenarioIds": list(self.scenario_ids),
            "scenarioSource": self.source.kind,
            "catalogKey": self.source.catalog_key,
            "score": self.score,
            "momentumAwarded": self.momentum_awarded,
            "playDay": self.play_day.isoformat(),
            "playNumber": self.play_number,
            "newMomentum": round(self.new_momentum, 1),
            "milestone": self.milestone,
            "noMomentumReason": self.no_momentum_reason,
            "createdAt": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class AwardEligibility:
    """Computed per request, never persisted."""

    can_earn: bool
    reason: Optional[NoMomentumReason]
    plays_today: int
    daily_gain: float


@dataclass(frozen=True)
class DrillSessionResult:
    session_id: str
    score: int
    total_questions: int
    momentum_awarded: int
    previous_momentum: float
    new_momentum: float
    milestone: Optional[int]
    no_momentum_reason: Optional[NoMomentumReason]
    is_first_play: bool
    replayed: bool = False

    def to_dict(self) -> dict:
        return {
            "sessionId": self.session_id,
            "score": self.score,
            "totalQuestions": self.total_questions,
            "momentumAwarded": self.momentum_awarded,
            "previousMomentum": round(self.previous_momentum, 1),
            "newMomentum": round(self.new_momentum, 1),
            "milestone": self.milestone,
            "noMomentumReason": self.no_momentum_reason,
            "isFirstPlay": self.is_first_play,
            "replayed": self.replayed,
        }
