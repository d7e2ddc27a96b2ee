"""Shared fixtures: a valid analysis payload and a scripted LLM client."""

import copy
import json

import pytest

from inquiry_analyzer.config import Settings

VALID_ANALYSIS = {
    "summary": "A booking platform for three physiotherapy clinics.",
    "requirements": {
        "functional": ["Online booking", "Staff calendar"],
        "nonFunctional": ["GDPR compliance"],
    },
    "feasibility": {
        "technical": "Standard web stack",
        "time": "Fits in one quarter",
        "resource": "Small team",
        "overall": "feasible",
    },
    "techStack": {
        "frontend": ["React"],
        "backend": ["FastAPI"],
        "database": ["PostgreSQL"],
        "server": ["AWS EC2"],
        "other": [],
        "reasoning": "Mature and well known",
        "serverReasoning": "Low traffic",
    },
    "timeline": {"totalDuration": "8-10 weeks"},
    "risks": [
        {"type": "schedule", "description": "Scope creep", "impact": "medium", "mitigation": "Fixed scope"},
    ],
    "teamMembers": {
        "roles": [
            {
                "role": "Backend engineer",
                "count": "1",
                "skills": ["Python"],
                "responsibilities": ["Owns the booking API and calendar sync"],
                "level": "senior",
                "workload": "full time",
                "keyDeliverables": ["Booking API"],
            }
        ],
        "totalCount": "3",
        "teamStructure": "1 PM, 1 backend, 1 frontend",
        "keyRequirements": ["Healthcare experience"],
    },
    "pricing": {
        "estimation": "$15,000 - $25,000",
        "breakdown": {"development": "$12,000", "testing": "$3,000"},
        "costTable": [{"role": "Backend engineer", "duration": "40 days", "tasks": "API"}],
        "factors": ["Integrations"],
    },
}


@pytest.fixture
def valid_analysis():
    return copy.deepcopy(VALID_ANALYSIS)


@pytest.fixture
def valid_reply(valid_analysis):
    return json.dumps(valid_analysis)


@pytest.fixture
def settings():
    return Settings(api_key="sk-test", token_limit=128_000)


class ScriptedClient:
    """Stands in for LLMClient: each send() pops the next scripted step.

    A step is either reply text or an exception instance to raise.
    """

    def __init__(self, *steps):
        self.steps = list(steps)
        self.calls = []

    async def send(self, system_prompt, user_prompt, **log_context):
        self.calls.append({"system": system_prompt, "user": user_prompt, **log_context})
        step = self.steps.pop(0) if len(self.steps) > 1 else self.steps[0]
        if isinstance(step, Exception):
            raise step
        return step


class SleepRecorder:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


@pytest.fixture
def sleep():
    return SleepRecorder()
