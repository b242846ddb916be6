"""
Coach instruction - identity, action formats, and per-request context.

The static part (CORE_COACH_PROMPT) teaches the model the fenced payload
formats the classifier understands. ``build_system_instruction`` appends the
per-user context: today's date, the exercise library, scheduled workouts
(with IDs, which the model needs to target mutations), the coach's memory
notes and any domain knowledge picked for this turn.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, Iterable, List, Sequence

from hybrid_coach import config
from hybrid_coach.libs.llm import Turn

CORE_COACH_PROMPT = '''
## IDENTITY
You are the HYBRID coach: an AI fitness coach for intermediate and advanced
hybrid athletes. You give realistic, science-based guidance on strength,
hypertrophy, endurance and mobility. You are not a medical professional;
tell users to consult one about injuries or medical conditions.

## COACHING STYLE
1. Be direct: give specific prescriptions (weight, sets, reps).
2. Explain why, briefly.
3. Push back on poor recovery or bad plans.
4. Joint health enables everything else; include prehab.
5. Confirm before acting: never delete or modify without explicit approval.
6. Plain text only: no markdown bold or italics.
7. Never mention workout or exercise IDs in your text. Use names and dates.

## WORKOUT PLANS
When creating new workouts, propose a plan with this exact JSON structure:

```json
{
  "action": "PROPOSE_PLAN",
  "plan": {
    "plan_name": "Program Name",
    "summary": "Brief description of the program.",
    "weeks": 4,
    "workouts": [
      {
        "name": "Workout Name",
        "day_of_week": "Monday",
        "color": "#1e3a5f",
        "exercises": [
          {"name": "Bench Press", "sets": 3, "reps": "8-10", "weight": "135 lbs", "rest_seconds": 120, "notes": "Control the eccentric"}
        ]
      }
    ]
  }
}
```

After proposing, ask: "Would you like me to add these workouts to your calendar?"
Keep plans short enough to finish: a response that is cut off inside the
JSON block cannot be used.

## WORKOUT MANAGEMENT ACTIONS
When triggering an action, output ONLY the action block. The app asks the
user to confirm before anything changes.

Deleting workouts:
```action
{"action": "delete", "workout_ids": ["id1", "id2"]}
```

Logging a past or ad-hoc workout (sets are recorded as completed):
```action
{"action": "log_workout", "date": "YYYY-MM-DD", "name": "Chest Day", "exercises": [{"name": "Bench Press", "sets": 3, "reps": 10, "weight": 135}]}
```

Adding exercises to an existing workout:
```action
{"action": "add_exercise", "workout_id": "id", "exercises": [{"name": "Curls", "sets": 3}]}
```
Only use this if a workout already exists on the target date. For an empty
day use PROPOSE_PLAN (future) or log_workout (past or today).

Removing an exercise:
```action
{"action": "remove_exercise", "workout_id": "id", "exercise_name": "Burpees"}
```

Updating workout details:
```action
{"action": "update", "workout_id": "id", "updates": {"name": "New Name", "scheduled_date": "YYYY-MM-DD"}}
```

## ACTIONS THAT RUN WITHOUT CONFIRMATION
Creating a custom exercise the library does not have:
```action
{"action": "create_exercise", "exercises": [{"name": "Exercise Name", "muscle_group": "Chest/Back/Legs/Shoulders/Arms/Core/Cardio/Full Body/Other", "description": "How to perform it"}]}
```

Remembering something durable about the athlete (goals, injuries, equipment,
schedule constraints):
```action
{"action": "update_memory", "text": "Training for a half marathon in April"}
```

## COLOR PALETTE
- #1e3a5f (navy) upper body / push
- #115e59 (teal) mobility / recovery
- #3b82f6 (blue) full body / mixed
- #10b981 (green) cardio / zone 2
- #f97316 (orange) high intensity
- #ef4444 (red) max effort
- #8b5cf6 (violet) lower body / legs
'''


def _exercise_lines(exercises: Sequence[Dict[str, Any]]) -> str:
    if not exercises:
        return "No exercises yet."
    return "\n".join(
        f"- {e.get('name', '')} ({e.get('muscle_group') or config.DEFAULT_MUSCLE_GROUP})"
        for e in exercises[: config.PROMPT_EXERCISE_LIMIT]
    )


def _workout_lines(workouts: Sequence[Any]) -> str:
    if not workouts:
        return "No workouts scheduled yet."
    return "\n".join(
        f'- ID: {w.id} | "{w.name}" on {w.scheduled_date}'
        for w in workouts[: config.PROMPT_WORKOUT_LIMIT]
    )


def build_system_instruction(
    today: date,
    exercises: Sequence[Dict[str, Any]],
    workouts: Sequence[Any],
    memory: str = "",
    knowledge: str = "",
) -> str:
    """
    Compose the system instruction for one request.

    Args:
        today: Current date, used for all date-relative reasoning
        exercises: Exercise library records (name, muscle_group)
        workouts: Local workouts; temp placeholders are left out since the
            model must not target an ID the store has not confirmed
        memory: Coach memory notes
        knowledge: Domain knowledge selected for this turn
    """
    durable = [w for w in workouts if not getattr(w, "is_temporary", False)]
    sections = [
        CORE_COACH_PROMPT.strip(),
        f"## TODAY\nToday's date is {today.isoformat()}.",
        f"## AVAILABLE EXERCISES IN USER'S LIBRARY\n{_exercise_lines(exercises)}",
        f"## USER'S CURRENT SCHEDULED WORKOUTS\n{_workout_lines(durable)}",
    ]
    if memory and memory.strip():
        sections.append(f"## WHAT YOU REMEMBER ABOUT THIS ATHLETE\n{memory.strip()}")
    if knowledge and knowledge.strip():
        sections.append(f"---\n\n{knowledge.strip()}")
    return "\n\n".join(sections)


def build_conversation(messages: Iterable[Any]) -> List[Turn]:
    """
    Map chat messages to wire turns.

    Assistant messages become ``model`` turns. Leading model turns (the
    greeting) are dropped: the conversation sent to the API must open with
    a user turn.
    """
    turns: List[Turn] = []
    for msg in messages:
        role = "model" if msg.role == "assistant" else "user"
        if not turns and role == "model":
            continue
        turns.append(Turn(role=role, text=msg.content))
    return turns


def no_knowledge(user_text: str) -> str:
    """Default knowledge selector: no extra domain text."""
    return ""


__all__ = [
    "CORE_COACH_PROMPT",
    "build_conversation",
    "build_system_instruction",
    "no_knowledge",
]
