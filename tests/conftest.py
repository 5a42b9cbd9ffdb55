"""Shared fixtures: a workflow backed by a JSON file store in tmp_path."""

import pytest

from core.advance import AutoAdvanceController
from core.store import JsonFileStore, SessionStore
from core.workflow import DiagnosisWorkflow

# Answers long enough to satisfy every interactive phase.
ANSWERS = [
    "头痛三天了，主要是太阳穴附近",
    "是胀痛，下午加重，休息后稍微缓解，伴有轻微恶心",
    "以前偶尔头痛，没有慢性病，最近工作压力大经常熬夜",
    "量过血压135/85，没有做过其他检查",
]

SHORT_ANSWER = "头痛"


@pytest.fixture
def durable(tmp_path):
    return JsonFileStore(tmp_path / "sessions")


@pytest.fixture
def store(durable):
    return SessionStore(durable)


@pytest.fixture
def workflow(store):
    return DiagnosisWorkflow(store, AutoAdvanceController(max_iterations=10, min_response_length=5))


@pytest.fixture
def started(workflow):
    """A freshly started session (waiting on the chief complaint question)."""
    return workflow.start("头痛三天")
