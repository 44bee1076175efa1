# wellcare/assistant.py
"""
AI health assistant: chat, symptom check and face-based wellness analysis.

All three call an OpenAI-compatible API and degrade to static templates when
no key is configured, the call fails, or the reply is not usable. Health
context is only ever gathered for the caller, through the access gate.
"""
from __future__ import annotations
import json
import logging
from typing import List, Optional

from flask import current_app
from openai import OpenAI

from .errors import NotFound
from .util import uid, now_iso, newest_first

logger = logging.getLogger(__name__)

HISTORY_TURNS = 10


def _client() -> Optional[OpenAI]:
    api_key = current_app.config.get("OPENAI_API_KEY", "")
    if not api_key:
        return None
    return OpenAI(
        api_key=api_key,
        base_url=current_app.config.get("OPENAI_BASE_URL"),
        timeout=current_app.config.get("OPENAI_TIMEOUT", 20),
    )


def _complete(messages: list, model_key: str, max_tokens: int, json_reply: bool = False) -> str:
    """Run one chat completion; raises on any provider error or empty reply."""
    client = _client()
    if client is None:
        raise RuntimeError("LLM provider not configured")
    kwargs = {}
    if json_reply:
        kwargs["response_format"] = {"type": "json_object"}
    resp = client.chat.completions.create(
        model=current_app.config[model_key],
        messages=messages,
        temperature=0.7,
        max_tokens=max_tokens,
        **kwargs,
    )
    content = (resp.choices[0].message.content or "").strip()
    if not content:
        raise RuntimeError("Empty response from LLM provider")
    return content


# -- chat ------------------------------------------------------------------

def _bp_status(systolic: int, diastolic: int) -> str:
    if systolic >= 140 or diastolic >= 90:
        return "elevated"
    if systolic >= 130 or diastolic >= 85:
        return "slightly elevated"
    return "within normal range"


def fallback_reply(message: str, name: Optional[str], latest: Optional[dict], medications: List[dict]) -> str:
    """Keyword-matched canned answer used when the LLM is unavailable."""
    text = message.lower()

    def has(*words):
        return any(w in text for w in words)

    if has("chest pain", "dizzy", "emergency"):
        return ("If you're experiencing chest pain, severe dizziness, difficulty breathing, or other "
                "serious symptoms, call emergency services or go to the nearest emergency room now. "
                "This assistant is not a substitute for emergency medical care.")

    if has("blood pressure", "bp"):
        if latest:
            s, d = latest["systolic"], latest["diastolic"]
            advice = ("I recommend consulting your healthcare provider about this elevated reading."
                      if _bp_status(s, d) == "elevated"
                      else "Continue monitoring your blood pressure regularly.")
            return (f"Your most recent blood pressure reading was {s}/{d} mmHg, which is "
                    f"{_bp_status(s, d)}. Normal blood pressure is typically around 120/80 mmHg. {advice}")
        if has("lower", "reduce", "improve", "decrease"):
            return ("Ways to help lower blood pressure: reduce sodium, stay active most days, keep a "
                    "healthy weight, limit alcohol, manage stress, sleep 7-9 hours and take prescribed "
                    "medications as directed. Talk to your healthcare provider before big changes.")
        return ("Normal blood pressure is typically around 120/80 mmHg. Stage 1 high is 130-139/80-89 "
                "and stage 2 is 140+/90+. Log your readings regularly and discuss them with your "
                "healthcare provider.")

    if has("medication", "medicine", "pill", "drug"):
        if medications:
            med_list = ", ".join(f"{m['name']} ({m['dosage']})" for m in medications)
            return (f"You're currently taking {len(medications)} medication(s): {med_list}. Take them "
                    "exactly as prescribed and ask your pharmacist or doctor about timing, side "
                    "effects or interactions.")
        return ("I don't see any medications logged in your profile. You can add them in the "
                "Medications section. Always take medications exactly as prescribed.")

    if has("stress", "anxiety", "relax"):
        return ("Deep breathing, a few minutes of meditation, regular exercise, good sleep and "
                "staying connected with people all help with stress. If it feels overwhelming, "
                "talk to your healthcare provider.")

    if has("exercise", "activity", "workout"):
        return ("Most adults benefit from 150 minutes of moderate activity per week, such as brisk "
                "walking, plus muscle strengthening twice a week. Check with your provider before "
                "starting a new program.")

    if has("diet", "food", "eat", "nutrition"):
        return ("A heart-healthy diet favours vegetables, fruit, whole grains and lean protein, and "
                "limits sodium, added sugar and processed food. The DASH diet is designed for blood "
                "pressure management.")

    if has("hello", "hi ", "hey"):
        greeting = f"Hello {name}!" if name else "Hello!"
        return (f"{greeting} I can help with blood pressure readings, medications, heart-healthy "
                "habits, exercise, nutrition and stress. What would you like to know?")

    return ("I'm here to help with your health questions: blood pressure readings, medications, "
            "healthy habits, exercise and nutrition. I provide general information only; always "
            "consult your healthcare provider for advice specific to you.")


def build_system_prompt(name: Optional[str], latest: Optional[dict], medications: List[dict]) -> str:
    parts = [
        "You are a helpful AI health assistant for WellCare Companion.",
        f"The user's name is {name or 'the patient'}.",
    ]
    if latest:
        vitals = f"Their most recent blood pressure reading was {latest['systolic']}/{latest['diastolic']} mmHg"
        if latest.get("pulse"):
            vitals += f" with a pulse of {latest['pulse']} bpm"
        parts.append(vitals + ".")
    if medications:
        med_list = ", ".join(f"{m['name']} ({m['dosage']})" for m in medications)
        parts.append(f"They are currently taking {len(medications)} medication(s): {med_list}.")
    parts.append(
        "Provide helpful, accurate health information. Always remind users to consult healthcare "
        "professionals for medical advice. Be empathetic and supportive. Keep responses concise."
    )
    return " ".join(parts)


# -- symptom check ---------------------------------------------------------

SYMPTOM_SYSTEM_PROMPT = """You are a medical information assistant. Analyze symptoms and provide educational information. Always emphasize consulting healthcare professionals.

Return ONLY a valid JSON object with this exact structure:
{
  "possibleConditions": ["condition1", "condition2"],
  "severity": "mild|moderate|severe",
  "recommendations": ["recommendation1", "recommendation2"],
  "urgency": "low|medium|high",
  "disclaimer": "This is for informational purposes only. Not a medical diagnosis."
}"""


def fallback_symptom_analysis(severity: Optional[int]) -> dict:
    level = severity or 5
    return {
        "possibleConditions": ["Analysis unavailable"],
        "severity": "severe" if level > 7 else "moderate" if level > 4 else "mild",
        "recommendations": [
            "Please consult a healthcare professional",
            "Monitor your symptoms closely",
            "Seek immediate care if symptoms worsen",
        ],
        "urgency": "high" if level > 7 else "medium",
        "disclaimer": "This is for informational purposes only. Not a medical diagnosis.",
    }


def normalize_symptom_analysis(data: dict) -> dict:
    return {
        "possibleConditions": data.get("possibleConditions") or ["Unable to determine"],
        "severity": data.get("severity") or "moderate",
        "recommendations": data.get("recommendations") or ["Consult a healthcare professional"],
        "urgency": data.get("urgency") or "medium",
        "disclaimer": data.get("disclaimer") or "This is for informational purposes only.",
    }


# -- face analysis ---------------------------------------------------------

FACE_SYSTEM_PROMPT = """You are a health analysis assistant. Analyze facial features for wellness indicators. Provide general observations only, not medical diagnoses.

Analyze for stress indicators, hydration, eye health and overall wellness appearance.

Return ONLY valid JSON with this structure:
{
  "stressLevel": "low|medium|high",
  "stressIndicators": ["indicator1"],
  "hydrationLevel": "well-hydrated|adequate|dehydrated",
  "hydrationSigns": ["sign1"],
  "eyeHealth": {"clarity": "good|fair|poor", "redness": "none|mild|moderate|severe", "darkCircles": "none|mild|moderate|severe"},
  "recommendations": ["recommendation1"],
  "overallScore": 85,
  "disclaimer": "This is not a medical diagnosis. Consult healthcare professionals."
}"""


def fallback_face_analysis() -> dict:
    return {
        "stressLevel": "medium",
        "stressIndicators": ["General facial analysis completed"],
        "hydrationLevel": "adequate",
        "hydrationSigns": ["Normal skin appearance"],
        "eyeHealth": {"clarity": "good", "redness": "none", "darkCircles": "mild"},
        "recommendations": [
            "Maintain regular sleep schedule",
            "Stay well hydrated throughout the day",
            "Take regular breaks from screens",
            "Practice stress management techniques",
        ],
        "overallScore": 75,
        "disclaimer": "This is not a medical diagnosis. Consult healthcare professionals for medical advice.",
    }


def normalize_face_analysis(data: dict) -> dict:
    default = fallback_face_analysis()
    return {k: data.get(k) or v for k, v in default.items()}


class HealthAssistant:
    def __init__(self, store, registry, gate):
        self.store = store
        self.registry = registry
        self.gate = gate

    def _context(self, user_id: str):
        profile = self.registry.get_profile(user_id)
        vitals = self.gate.vitals(user_id, user_id)
        medications = [m for m in self.gate.medications(user_id, user_id) if m.get("active")]
        return profile, (vitals[0] if vitals else None), medications

    def chat(self, user_id: str, message: str, history: Optional[list] = None) -> dict:
        profile, latest, medications = self._context(user_id)
        messages = [{"role": "system", "content": build_system_prompt(profile.get("name"), latest, medications)}]
        for turn in (history or [])[-HISTORY_TURNS:]:
            messages.append({"role": turn["role"], "content": turn["content"]})
        messages.append({"role": "user", "content": message})

        used_fallback = False
        try:
            reply = _complete(messages, "OPENAI_CHAT_MODEL", max_tokens=500)
        except Exception as e:
            logger.warning("AI chat falling back: %s", e)
            used_fallback = True
            reply = fallback_reply(message, profile.get("name"), latest, medications)

        chat_id = uid("chat")
        self.store.set(f"chat:{user_id}:{chat_id}", {
            "id": chat_id,
            "userId": user_id,
            "userMessage": message,
            "aiResponse": reply,
            "usedFallback": used_fallback,
            "timestamp": now_iso(),
        })
        return {"message": reply, "usedFallback": used_fallback}

    def chat_history(self, user_id: str) -> list:
        # oldest first, as a conversation reads
        return list(reversed(newest_first(self.store.scan_by_prefix(f"chat:{user_id}:"))))

    def check_symptoms(self, user_id: str, symptoms: List[str], duration: Optional[str] = None,
                       severity: Optional[int] = None) -> dict:
        profile = self.registry.get_profile(user_id)
        prompt = (
            "Analyze these symptoms:\n"
            f"- Symptoms: {', '.join(symptoms)}\n"
            f"- Duration: {duration or 'Not specified'}\n"
            f"- Severity (1-10): {severity or 5}\n"
            f"- User age: {profile.get('age') or 'Not specified'}\n"
            f"- Existing conditions: {', '.join(profile.get('conditions') or []) or 'None'}\n\n"
            "Return analysis as JSON."
        )
        try:
            content = _complete(
                [{"role": "system", "content": SYMPTOM_SYSTEM_PROMPT}, {"role": "user", "content": prompt}],
                "OPENAI_CHAT_MODEL", max_tokens=1500, json_reply=True,
            )
            data = json.loads(content)
            if not isinstance(data, dict):
                raise ValueError("symptom analysis is not a JSON object")
            analysis = normalize_symptom_analysis(data)
        except Exception as e:
            logger.warning("Symptom check falling back: %s", e)
            analysis = fallback_symptom_analysis(severity)

        check_id = uid("sym")
        self.store.set(f"symptom:{user_id}:{check_id}", {
            "id": check_id,
            "userId": user_id,
            "symptoms": symptoms,
            "duration": duration,
            "severity": severity,
            "analysis": analysis,
            "timestamp": now_iso(),
        })
        return {"analysis": analysis, "checkId": check_id}

    def symptom_history(self, user_id: str) -> list:
        return newest_first(self.store.scan_by_prefix(f"symptom:{user_id}:"))

    def start_session(self, user_id: str) -> dict:
        session_id = uid("hcs")
        session = {
            "id": session_id,
            "userId": user_id,
            "status": "started",
            "startTime": now_iso(),
            "checks": [],
        }
        return self.store.set(f"health-session:{user_id}:{session_id}", session)

    def _get_session(self, user_id: str, session_id: str) -> dict:
        session = self.store.get(f"health-session:{user_id}:{session_id}")
        if session is None:
            raise NotFound("Session not found")
        return session

    def analyze_face(self, user_id: str, image_data: str, session_id: Optional[str] = None) -> dict:
        session = self._get_session(user_id, session_id) if session_id else None
        try:
            content = _complete(
                [
                    {"role": "system", "content": FACE_SYSTEM_PROMPT},
                    {"role": "user", "content": [
                        {"type": "text", "text": "Analyze this face for stress, hydration, and eye health indicators. Return JSON only."},
                        {"type": "image_url", "image_url": {"url": image_data}},
                    ]},
                ],
                "OPENAI_VISION_MODEL", max_tokens=2000, json_reply=True,
            )
            data = json.loads(content)
            if not isinstance(data, dict):
                raise ValueError("face analysis is not a JSON object")
            analysis = normalize_face_analysis(data)
        except Exception as e:
            logger.warning("Face analysis falling back: %s", e)
            analysis = fallback_face_analysis()

        analysis_id = uid("face")
        timestamp = now_iso()
        with self.store.atomic():
            self.store.set(f"face-analysis:{user_id}:{analysis_id}", {
                "id": analysis_id,
                "userId": user_id,
                "sessionId": session_id,
                "analysis": analysis,
                "timestamp": timestamp,
            })
            if session is not None:
                session["checks"].append({"type": "face-analysis", "id": analysis_id, "timestamp": timestamp})
                self.store.set(f"health-session:{user_id}:{session_id}", session)
        return {"analysis": analysis, "analysisId": analysis_id}

    def complete_session(self, user_id: str, session_id: str) -> dict:
        session = self._get_session(user_id, session_id)
        session["status"] = "completed"
        session["endTime"] = now_iso()
        return self.store.set(f"health-session:{user_id}:{session_id}", session)

    def health_check_history(self, user_id: str) -> dict:
        return {
            "sessions": newest_first(self.store.scan_by_prefix(f"health-session:{user_id}:"), field="startTime"),
            "analyses": newest_first(self.store.scan_by_prefix(f"face-analysis:{user_id}:")),
        }
