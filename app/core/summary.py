from typing import List

from app.core.schemas import RuleSummary, RulesResponse


def summarize_rules(response: RulesResponse) -> List[RuleSummary]:
    """Flatten groups into one summary per rule, keeping group then rule order."""
    out = []
    for group in response.groups:
        for rule in group.rules:
            out.append(RuleSummary(
                uid=rule.uid,
                title=rule.name,
                folderUid=rule.folderUid or group.folderUid,
                group=group.name,
                state=rule.state,
                health=rule.health,
                labels=dict(rule.labels),
                activeAlerts=len(rule.alerts),
            ))
    return out
