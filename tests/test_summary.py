import json

from app.core.schemas import RulesResponse
from app.core.summary import summarize_rules


def test_summaries_follow_group_then_rule_order(rules_payload):
    rules_payload["data"]["groups"].append({
        "name": "disk",
        "folderUid": "fold-2",
        "rules": [
            {"uid": "r2", "name": "DiskFull", "state": "inactive", "health": "ok"},
            {"uid": "r3", "name": "DiskSlow", "state": "pending", "health": "ok"},
        ],
    })
    summaries = summarize_rules(RulesResponse.model_validate_json(json.dumps(rules_payload)))

    assert [s.uid for s in summaries] == ["rule-abc", "r2", "r3"]
    first = summaries[0]
    assert first.title == "HighLatency"
    assert first.group == "api-latency"
    assert first.activeAlerts == 1
    assert first.labels == {"severity": "critical"}
    # rule without its own folderUid inherits the group's
    assert summaries[1].folderUid == "fold-2"


def test_no_groups_no_summaries():
    assert summarize_rules(RulesResponse()) == []
