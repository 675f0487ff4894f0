"""Task-to-model routing for the LiteLLM proxy.

LiteLLM's own config decides which provider serves each model name and its
fallback chain; this module only picks the name.
"""

# Task type -> LiteLLM model name
TASK_MODEL_MAP = {
    "assessment": "gemini-flash",  # Short graded assessment, high volume
    "report": "gemini-flash",  # Executive insights report
}

# Default model when task type isn't in the map
DEFAULT_MODEL = "gemini-general"


def get_model_for_task(task_type: str) -> str:
    """Return the LiteLLM model name for a given task type."""
    return TASK_MODEL_MAP.get(task_type, DEFAULT_MODEL)
