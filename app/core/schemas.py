from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

# Field names mirror the Grafana wire format. Unknown fields are ignored.


class _Snapshot(BaseModel):
    """Immutable, strictly typed view of one object in the rules payload.

    A JSON null is treated like an omitted field. Timestamps are parsed to
    datetime, so Grafana's nanosecond fractions are truncated to microseconds.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", strict=True)

    @field_validator("*", mode="before")
    @classmethod
    def _null_is_absent(cls, value, info: ValidationInfo):
        if value is None:
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)
        return value


class AlertInstance(_Snapshot):
    labels: Dict[str, str] = Field(default_factory=dict)
    annotations: Dict[str, str] = Field(default_factory=dict)
    state: str = ""
    activeAt: Optional[datetime] = None
    value: str = ""


class AlertingRule(_Snapshot):
    # uid is only unique within folderUid
    uid: str = ""
    folderUid: str = ""
    name: str = ""
    query: str = ""
    state: str = ""
    health: str = ""
    type: str = ""
    lastError: str = ""
    duration: float = 0.0
    keepFiringFor: float = 0.0
    labels: Dict[str, str] = Field(default_factory=dict)
    annotations: Dict[str, str] = Field(default_factory=dict)
    activeAt: Optional[datetime] = None
    alerts: List[AlertInstance] = Field(default_factory=list)
    totals: Optional[Dict[str, int]] = None
    totalsFiltered: Optional[Dict[str, int]] = None
    lastEvaluation: Optional[datetime] = None
    evaluationTime: float = 0.0


class RuleGroup(_Snapshot):
    name: str = ""
    folderUid: str = ""
    rules: List[AlertingRule] = Field(default_factory=list)
    interval: float = 0.0
    lastEvaluation: Optional[datetime] = None
    evaluationTime: float = 0.0


class RulesData(_Snapshot):
    groups: List[RuleGroup] = Field(default_factory=list)
    groupNextToken: str = ""
    totals: Optional[Dict[str, int]] = None


class RulesResponse(_Snapshot):
    data: RulesData = Field(default_factory=RulesData)

    @property
    def groups(self) -> List[RuleGroup]:
        return self.data.groups

    @property
    def next_token(self) -> str:
        """Continuation token; non-empty means more groups exist server-side."""
        return self.data.groupNextToken

    @property
    def totals(self) -> Optional[Dict[str, int]]:
        return self.data.totals


class RuleSummary(BaseModel):
    uid: str
    title: str
    folderUid: str
    group: str
    state: str
    health: str
    labels: Dict[str, str] = {}
    activeAlerts: int = 0
