# Role: Strict prompt template for intent classification + entity extraction. It teaches the LLM a rigid JSON
# schema (intent, confidence, entities) and the entity names the task dialogs can prefill.

from __future__ import annotations

import json
from datetime import date
from typing import Optional

from campus_bot.models.intent import Intent

ENTITY_NAMES = ("professor", "purpose", "datetime", "student_id", "letter_type")


def build_intent_prompt(user_message: str, today: Optional[date] = None) -> str:
    # Step 1: allowed labels and today's date (for resolving "tomorrow", "next monday", ...).
    intents = [i.value for i in Intent if i != Intent.QNA]
    today_iso = (today or date.today()).isoformat()

    # Key lines: examples anchor the output format; entities copy the user's own words.
    examples = [
        {
            "user": "book appointment with Dr. Smith",
            "output": {"intent": "BookAppointment", "confidence": 0.93, "entities": {"professor": "Dr. Smith"}},
        },
        {
            "user": "I need to see my tutor tomorrow about my dissertation",
            "output": {
                "intent": "BookAppointment",
                "confidence": 0.88,
                "entities": {"purpose": "my dissertation", "datetime": "<tomorrow as YYYY-MM-DD>"},
            },
        },
        {
            "user": "can I get a bank letter",
            "output": {"intent": "StudentLetter", "confidence": 0.9, "entities": {"letter_type": "Bank Letter"}},
        },
        {
            "user": "when are the office hours",
            "output": {"intent": "OfficeHours", "confidence": 0.86, "entities": {}},
        },
        {
            "user": "what's the weather like",
            "output": {"intent": "None", "confidence": 0.7, "entities": {}},
        },
    ]
    examples_block = "\n".join(
        f"User: {ex['user']}\nOutput: {json.dumps(ex['output'], ensure_ascii=False)}" for ex in examples
    )

    return f"""You are the intent classifier of a university student-services assistant.

Today's date: {today_iso}

Classify the user's message into exactly one intent from this list:
{json.dumps(intents)}

Return a single JSON object and nothing else:
{{
  "intent": "<one of the intents above>",
  "confidence": <number between 0 and 1>,
  "entities": {{ "<entity name>": "<text>" }}
}}

Entity names you may extract (omit any you did not find, never invent values):
- professor: the member of staff the student wants to meet (as written by the user)
- purpose: why the student wants the appointment
- datetime: the appointment date as a timex: YYYY-MM-DD, optionally followed by THH:MM,
  or by TMO / TAF / TEV / TNI for morning / afternoon / evening / night.
  Use XXXX for the year when the user did not say which year and it cannot be inferred.
- student_id: the student's ID number
- letter_type: "Bank Letter" or "Student status Letter"

Use "None" for anything that is not one of the tasks above (general questions are answered elsewhere).

Examples:
{examples_block}

User: {user_message}
Output:"""
