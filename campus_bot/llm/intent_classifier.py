# Role: LLM-backed intent classification + entity extraction for the router.
# It enforces a strict "single JSON object" contract, repairs common violations, and degrades to
# intent=None / confidence 0 when the model output cannot be used.

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

import campus_bot.config as config
from campus_bot.llm.gemini_client import GeminiClient
from campus_bot.models.intent import Intent
from campus_bot.prompts.intent_prompt import ENTITY_NAMES, build_intent_prompt


@dataclass(frozen=True)
class IntentResult:
    intent: Intent
    confidence: float
    entities: Dict[str, str] = field(default_factory=dict)
    # Label exactly as the model returned it (kept for "intent was ..." diagnostics).
    raw_label: str = Intent.NONE.value
    raw_text: str = ""


class IntentClassifier:
    """
    LLM-backed intent classification + entity extraction.

    Contract:
    - We ask the model to return a single JSON object only.
    - In practice, models sometimes wrap JSON in code fences or add extra text.
    - We repair what we can and (optionally) log when the contract was violated.
    - The Gemini client is created lazily, so an unconfigured classifier can still be constructed
      and report is_configured=False (the router then runs in degraded mode).
    """

    def __init__(self, client: Optional[GeminiClient] = None) -> None:
        self._client = client

    @property
    def is_configured(self) -> bool:
        return self._client is not None or bool(os.getenv("GEMINI_API_KEY"))

    @property
    def client(self) -> GeminiClient:
        if self._client is None:
            self._client = GeminiClient()
        return self._client

    def classify(self, user_message: str, today: Optional[date] = None) -> IntentResult:
        # 1) Build strict prompt with allowed intents + entity schema
        # 2) Call LLM (RuntimeError propagates; the router treats it as "not understood")
        # 3) Parse JSON (with repairs)
        # 4) Keep only known entity names with non-empty text
        prompt = build_intent_prompt(user_message, today=today)
        raw = self.client.generate_text(prompt)

        if config.DEBUG:
            print("\n--- INTENT CLASSIFIER ---")
            print("USER MESSAGE:", user_message)
            print("RAW LLM OUTPUT:\n", raw)

        parsed, parse_meta = self._try_parse_json(raw)
        if not parsed:
            return self._fallback(raw)

        if parse_meta.get("repaired") and config.DEBUG:
            print(f"WARNING: IntentClassifier received non-strict JSON output (repaired={parse_meta}).")

        raw_label = parsed.get("intent")
        intent = self._parse_intent(raw_label)
        confidence = self._parse_confidence(parsed.get("confidence"))
        entities = self._parse_entities(parsed.get("entities"))

        if intent is None:
            # Unknown label: keep it for diagnostics but route it as "None".
            intent = Intent.NONE

        if config.DEBUG:
            print("PARSED INTENT:", intent, "CONFIDENCE:", confidence)
            print("ENTITIES:", entities)
            print("------------------------\n")

        return IntentResult(
            intent=intent,
            confidence=confidence,
            entities=entities,
            raw_label=str(raw_label) if raw_label is not None else Intent.NONE.value,
            raw_text=raw,
        )

    def _json_candidates(self, text: str) -> List[Tuple[str, str]]:
        # Role: the strings worth trying, in order: as-is, without markdown fences, outermost {...}.
        raw = (text or "").strip()
        candidates = [("strict", raw)]

        unfenced = re.sub(r"^\s*```(?:json)?\s*|\s*```\s*$", "", raw, flags=re.IGNORECASE).strip()
        if unfenced != raw:
            candidates.append(("stripped_fences", unfenced))

        start, end = unfenced.find("{"), unfenced.rfind("}")
        if 0 <= start < end:
            candidates.append(("extracted_braces", unfenced[start : end + 1]))
        return candidates

    def _try_parse_json(self, text: str) -> Tuple[Optional[Dict[str, Any]], Dict[str, Any]]:
        for method, candidate in self._json_candidates(text):
            try:
                parsed = json.loads(candidate)
            except json.JSONDecodeError:
                continue
            meta = {"repaired": method != "strict", "method": method}
            return (parsed if isinstance(parsed, dict) else None), meta
        return None, {"repaired": False, "method": "failed"}

    def _parse_intent(self, value: Any) -> Optional[Intent]:
        if not isinstance(value, str):
            return None
        try:
            return Intent(value.strip())
        except ValueError:
            return None

    def _parse_confidence(self, value: Any) -> float:
        try:
            c = float(value)
        except (TypeError, ValueError):
            return 0.0
        return min(max(c, 0.0), 1.0)

    def _parse_entities(self, value: Any) -> Dict[str, str]:
        if not isinstance(value, dict):
            return {}
        out: Dict[str, str] = {}
        for name in ENTITY_NAMES:
            text = value.get(name)
            if isinstance(text, (int, float)) and not isinstance(text, bool):
                text = str(text)
            if isinstance(text, str) and text.strip():
                out[name] = text.strip()
        return out

    def _fallback(self, raw_text: str) -> IntentResult:
        # Role: safe default when parsing fails -> router answers "didn't get that".
        if config.DEBUG:
            print("\n--- INTENT FALLBACK TRIGGERED ---")
            print("RAW TEXT:", raw_text)
            print("--------------------------------\n")

        return IntentResult(intent=Intent.NONE, confidence=0.0, raw_text=raw_text or "")
