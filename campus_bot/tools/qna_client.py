# Role: External knowledge-base adapter. Calls a QnA-Maker-style generateAnswer endpoint and returns ranked
# answers (score normalized to 0..1) with their follow-up prompts. Failures come back as ok=False, never raised.

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests

import campus_bot.config as config


@dataclass(frozen=True)
class QnAAnswer:
    answer: str
    score: float
    follow_up_prompts: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class QnAToolResult:
    ok: bool
    answers: List[QnAAnswer]
    error: Optional[str] = None

    @property
    def top_score(self) -> float:
        return self.answers[0].score if self.answers else 0.0


class QnAClient:
    _TIMEOUT_SECONDS = 10

    def __init__(
        self,
        endpoint: Optional[str] = None,
        knowledge_base_id: Optional[str] = None,
        endpoint_key: Optional[str] = None,
        top: int = 3,
    ) -> None:
        # Key line: secrets come from env (.env), never from code.
        self.endpoint = (endpoint or os.getenv("QNA_ENDPOINT") or "").rstrip("/")
        self.knowledge_base_id = knowledge_base_id or os.getenv("QNA_KB_ID")
        self.endpoint_key = endpoint_key or os.getenv("QNA_ENDPOINT_KEY")
        self.top = top

    @property
    def is_configured(self) -> bool:
        return bool(self.endpoint and self.knowledge_base_id and self.endpoint_key)

    def get_answers(self, question: str) -> QnAToolResult:
        # 1) Validate configuration + question
        # 2) POST generateAnswer
        # 3) Normalize answers (drop the "no match" placeholder, score 0..100 -> 0..1, best first)
        if not self.is_configured:
            return QnAToolResult(ok=False, answers=[], error="Knowledge base is not configured")
        if not question or not question.strip():
            return QnAToolResult(ok=True, answers=[])

        url = f"{self.endpoint}/knowledgebases/{self.knowledge_base_id}/generateAnswer"
        try:
            r = requests.post(
                url,
                json={"question": question.strip(), "top": self.top},
                headers={"Authorization": f"EndpointKey {self.endpoint_key}"},
                timeout=self._TIMEOUT_SECONDS,
            )
            r.raise_for_status()
            payload = r.json()
            answers = self._parse_answers(payload)
        except requests.RequestException as e:
            return QnAToolResult(ok=False, answers=[], error=f"Knowledge base request failed: {e}")
        except (TypeError, ValueError, AttributeError) as e:
            return QnAToolResult(ok=False, answers=[], error=f"Bad knowledge base payload: {e}")

        if config.DEBUG:
            print("\n--- QNA TOOL ---")
            print("QUESTION:", question)
            print("ANSWERS:", [(a.score, a.answer[:60]) for a in answers])
            print("----------------\n")

        return QnAToolResult(ok=True, answers=answers)

    def _parse_answers(self, payload: Dict[str, Any]) -> List[QnAAnswer]:
        out: List[QnAAnswer] = []
        for item in payload.get("answers") or []:
            text = (item.get("answer") or "").strip()
            score = float(item.get("score") or 0.0) / 100.0
            # Key line: the service answers "no match" with id -1 / score 0; that is not an answer.
            if not text or item.get("id") == -1 or score <= 0.0:
                continue

            prompts = ((item.get("context") or {}).get("prompts")) or []
            follow_ups = [
                p["displayText"].strip()
                for p in sorted(prompts, key=lambda p: p.get("displayOrder", 0))
                if isinstance(p.get("displayText"), str) and p["displayText"].strip()
            ]
            out.append(QnAAnswer(answer=text, score=min(score, 1.0), follow_up_prompts=follow_ups))

        out.sort(key=lambda a: a.score, reverse=True)
        return out
