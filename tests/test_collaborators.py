from types import SimpleNamespace

import pytest

from services.ai_service import BreakdownService, parse_breakdown
from services.email_service import EmailService


class FakeCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _client(completions):
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


REPLY = """Here is the plan:
```json
{"milestones": [{"title": "Research", "tasks": [
  {"title": "Interview users", "description": "Five calls", "estimate": "3 days", "suggestedRole": "marketing"}
]}]}
```"""


def test_parse_breakdown_extracts_json_from_prose():
    breakdown = parse_breakdown(REPLY)

    task = breakdown.milestones[0].tasks[0]
    assert breakdown.milestones[0].title == "Research"
    assert task.suggested_role == "marketing"
    assert task.estimate == "3 days"


@pytest.mark.parametrize("text", ["no json here", '{"milestones": []}', "{not json}"])
def test_parse_breakdown_rejects_unusable_replies(text):
    with pytest.raises(ValueError):
        parse_breakdown(text)


def test_generate_breakdown_uses_model_reply():
    completions = FakeCompletions(content=REPLY)
    service = BreakdownService(client=_client(completions), model="test-model")

    breakdown = service.generate_breakdown("Validate the idea", ["marketing", "design"])

    assert breakdown.milestones[0].title == "Research"
    call = completions.calls[0]
    assert call["model"] == "test-model"
    assert "marketing, design" in call["messages"][1]["content"]


@pytest.mark.parametrize("completions", [
    FakeCompletions(error=RuntimeError("rate limited")),
    FakeCompletions(content="Sorry, I can't help with that."),
])
def test_generate_breakdown_falls_back(completions):
    service = BreakdownService(client=_client(completions), model="test-model")

    breakdown = service.generate_breakdown("Launch a landing page")

    assert [m.title for m in breakdown.milestones] == ["Project Planning", "Development"]
    assert [t.title for t in breakdown.milestones[1].tasks] == [
        "Setup Development Environment", "Implement Core Features",
    ]


def test_generate_breakdown_without_client_falls_back():
    breakdown = BreakdownService(client=None).generate_breakdown("Launch a landing page")
    assert len(breakdown.milestones) == 2


def test_unconfigured_email_is_mocked():
    service = EmailService(api_key="")

    message_id = service.send("someone@example.com", "Hello", "<p>Hi</p>")

    assert service.enabled is False
    assert message_id.startswith("dev-email-")
