from __future__ import annotations

from maturity_engine.application.api import submit_topic_answer
from maturity_engine.infrastructure.uow import UnitOfWork

# Three dimensions; "culture" has no topics and always scores 0/0.
CATALOG = {
    "title": "Operational Resilience",
    "dimensions": [
        {
            "key": "gov",
            "title": "Governance",
            "category": "Leadership",
            "topics": [
                {"key": "gov_board", "label": "Board oversight"},
                {"key": "gov_policy", "label": "Policy framework"},
            ],
        },
        {
            "key": "risk",
            "title": "Risk Management",
            "category": "Risk",
            "topics": [
                {"key": "risk_register", "label": "Risk register"},
                {"key": "risk_appetite", "label": "Risk appetite"},
            ],
        },
        {"key": "culture", "title": "Culture", "topics": []},
    ],
    "recommendations": [
        {
            "topic_key": "gov_board",
            "title": "Adopt a board resilience charter",
            "gap_min": 1,
            "category": "Quick Win",
            "priority": 80,
            "action_items": ["Draft charter", "Board sign-off"],
            "tags": ["governance"],
        },
        {
            "topic_key": "gov_board",
            "title": "Run board resilience training",
            "score_max": 3,
            "priority": 60,
        },
        {
            "topic_key": "gov_policy",
            "title": "Refresh the policy framework",
            "gap_min": 0.5,
            "priority": 80,
        },
        {
            "topic_key": "risk_register",
            "title": "Stand up a central risk register",
            "score_max": 2.5,
            "category": "Big Bet",
            "priority": 90,
        },
        {
            "topic_key": "risk_register",
            "title": "Retired guidance",
            "priority": 100,
            "is_active": False,
        },
    ],
}

# (current, target) per topic key.
ANSWERS = {
    "gov_board": (2.0, 4.0),
    "gov_policy": (3.0, 3.5),
    "risk_register": (2.0, 5.0),
    "risk_appetite": (4.0, 3.0),
}


def answer_all(uow: UnitOfWork, response_id: int, topics: dict[str, int]) -> None:
    for key, (current, target) in ANSWERS.items():
        submit_topic_answer(uow, response_id, topics[key], current, target)
