import json
from types import SimpleNamespace

import pytest

from wellcare import assistant
from wellcare.assistant import fallback_reply, fallback_symptom_analysis


class FakeClient:
    """Stands in for the OpenAI client; records every request."""

    def __init__(self, content=None, error=None):
        self.requests = []
        self._content = content
        self._error = error
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs):
        self.requests.append(kwargs)
        if self._error:
            raise self._error
        message = SimpleNamespace(content=self._content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


@pytest.fixture
def fake_llm(monkeypatch):
    def install(**kwargs):
        client = FakeClient(**kwargs)
        monkeypatch.setattr(assistant, "_client", lambda: client)
        return client
    return install


def test_fallback_reply_uses_latest_reading():
    text = fallback_reply("what does my latest bp mean?", "Pat", {"systolic": 150, "diastolic": 95}, [])
    assert "150/95" in text
    assert "elevated" in text


def test_fallback_reply_lists_medications():
    meds = [{"name": "Lisinopril", "dosage": "10mg"}]
    assert "Lisinopril (10mg)" in fallback_reply("when do I take my medication", None, None, meds)


def test_fallback_symptom_severity_bands():
    assert fallback_symptom_analysis(9)["urgency"] == "high"
    assert fallback_symptom_analysis(6)["severity"] == "moderate"
    assert fallback_symptom_analysis(2)["severity"] == "mild"


def test_chat_without_api_key_falls_back(client, signup):
    headers, _ = signup("pat@example.com")
    client.post("/vitals", headers=headers, json={"systolic": 150, "diastolic": 95})

    resp = client.post("/ai/chat", headers=headers, json={"message": "Is my blood pressure ok?"})
    body = resp.get_json()
    assert resp.status_code == 200
    assert body["usedFallback"] is True
    assert "150/95" in body["message"]

    history = client.get("/ai/chat/history", headers=headers).get_json()["history"]
    assert [h["userMessage"] for h in history] == ["Is my blood pressure ok?"]


def test_chat_sends_own_context_to_llm(client, signup, fake_llm):
    llm = fake_llm(content="Keep it up!")
    headers, _ = signup("pat@example.com", name="Pat")
    client.post("/vitals", headers=headers, json={"systolic": 128, "diastolic": 82, "pulse": 70})
    client.post("/medications", headers=headers, json={"name": "Lisinopril", "dosage": "10mg"})

    history = [{"role": "user", "content": f"q{i}"} for i in range(15)]
    body = client.post("/ai/chat", headers=headers,
                       json={"message": "hello", "conversationHistory": history}).get_json()

    assert body == {"success": True, "message": "Keep it up!", "usedFallback": False}
    messages = llm.requests[0]["messages"]
    assert "128/82 mmHg with a pulse of 70 bpm" in messages[0]["content"]
    assert "Lisinopril (10mg)" in messages[0]["content"]
    assert len(messages) == 1 + 10 + 1
    assert messages[-1] == {"role": "user", "content": "hello"}


def test_chat_provider_error_falls_back(client, signup, fake_llm):
    fake_llm(error=RuntimeError("rate limited"))
    headers, _ = signup("pat@example.com")
    body = client.post("/ai/chat", headers=headers, json={"message": "exercise tips"}).get_json()
    assert body["usedFallback"] is True
    assert "150 minutes" in body["message"]


def test_symptom_check_normalises_llm_json(client, signup, fake_llm):
    fake_llm(content=json.dumps({"possibleConditions": ["Tension headache"], "urgency": "low"}))
    headers, _ = signup("pat@example.com", conditions=["hypertension"])

    resp = client.post("/ai/symptom-check", headers=headers,
                       json={"symptoms": ["headache"], "duration": "2 days", "severity": 3})
    analysis = resp.get_json()["analysis"]
    assert analysis["possibleConditions"] == ["Tension headache"]
    assert analysis["urgency"] == "low"
    assert analysis["severity"] == "moderate"

    checks = client.get("/ai/symptom-history", headers=headers).get_json()["checks"]
    assert checks[0]["id"] == resp.get_json()["checkId"]


def test_symptom_check_bad_json_falls_back(client, signup, fake_llm):
    fake_llm(content="not json")
    headers, _ = signup("pat@example.com")
    resp = client.post("/ai/symptom-check", headers=headers, json={"symptoms": ["chest tightness"], "severity": 8})
    assert resp.get_json()["analysis"]["urgency"] == "high"


def test_symptom_check_requires_symptoms(client, signup):
    headers, _ = signup("pat@example.com")
    assert client.post("/ai/symptom-check", headers=headers, json={"symptoms": []}).status_code == 400


def test_face_session_flow(client, signup):
    headers, _ = signup("pat@example.com")
    session = client.post("/health-check/session", headers=headers).get_json()["session"]

    resp = client.post("/health-check/analyze-face", headers=headers,
                       json={"imageData": "data:image/jpeg;base64,AAAA", "sessionId": session["id"]})
    assert resp.status_code == 200
    analysis_id = resp.get_json()["analysisId"]
    assert resp.get_json()["analysis"]["overallScore"] == 75

    done = client.post("/health-check/session/complete", headers=headers,
                       json={"sessionId": session["id"]}).get_json()["session"]
    assert done["status"] == "completed"
    assert [c["id"] for c in done["checks"]] == [analysis_id]

    history = client.get("/health-check/history", headers=headers).get_json()
    assert len(history["sessions"]) == 1
    assert len(history["analyses"]) == 1


def test_face_analysis_rejects_foreign_session(client, signup):
    pat_headers, _ = signup("pat@example.com")
    other_headers, _ = signup("other@example.com")
    session = client.post("/health-check/session", headers=pat_headers).get_json()["session"]

    resp = client.post("/health-check/analyze-face", headers=other_headers,
                       json={"imageData": "data:image/png;base64,AAAA", "sessionId": session["id"]})
    assert resp.status_code == 404
