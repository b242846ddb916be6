"""Configuration for the coach service."""

import os

# Generative language API
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
COACH_MODEL = os.getenv("COACH_MODEL", "gemini-2.0-flash")
COACH_TEMPERATURE = float(os.getenv("COACH_TEMPERATURE", "0.7"))
COACH_MAX_OUTPUT_TOKENS = int(os.getenv("COACH_MAX_OUTPUT_TOKENS", "2048"))
COACH_LLM_TIMEOUT_MS = int(os.getenv("COACH_LLM_TIMEOUT_MS", "60000"))

# Remote data store (HTTP functions)
HYBRID_FUNCTIONS_BASE_URL = os.getenv(
    "HYBRID_FUNCTIONS_BASE_URL", "http://localhost:5001/hybrid/us-central1"
)
HYBRID_API_KEY = os.getenv("HYBRID_API_KEY")
HYBRID_HTTP_TIMEOUT_SECS = int(os.getenv("HYBRID_HTTP_TIMEOUT_SECS", "30"))

# Prompt assembly limits
PROMPT_EXERCISE_LIMIT = 50
PROMPT_WORKOUT_LIMIT = 20

# Defaults applied when the coach omits a field
DEFAULT_WORKOUT_COLOR = "#1e3a5f"
DEFAULT_PLAN_WEEKS = 4
DEFAULT_MUSCLE_GROUP = "Other"
