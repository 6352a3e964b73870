from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Tuple

from core_config.constants import MIN_OPTIONS_FLOOR
from core_models import NavigationRequest
from core_utils import jsonx
from core_utils.fingerprints import prompt_fingerprint

ROOT_MARKER = "(root: no selections yet)"
BUCKET_RANGE = (6, 12)

# Shape the model is asked to emit; mirrors the public response fields.
OUTPUT_SCHEMA: Dict[str, Any] = {
    "options": [{
        "id": "string (lowercase slug, e.g. 'outdoor-gear')",
        "label": "string",
        "description": "string (one short sentence)",
        "split_dimension": "string",
        "confidence": "number between 0 and 1",
    }],
    "buckets": [{"label": "string", "option_ids": ["string"]}],
    "can_confirm_here": "boolean",
    "confirm_reason": "string",
}


@dataclass(frozen=True)
class NavigationPrompt:
    """Transport-independent prompt for one navigation step."""
    instructions: str
    body: str
    min_options: int
    max_options: int

    @property
    def text(self) -> str:
        return f"{self.instructions}\n\n{self.body}"

    @property
    def fingerprint(self) -> str:
        return prompt_fingerprint({"instructions": self.instructions, "body": self.body})


def option_target(request: NavigationRequest) -> Tuple[int, int]:
    """``(low, high)`` option count bounds: the floor, capped by the request's max."""
    high = request.max_options
    return min(MIN_OPTIONS_FLOOR, high), high


def build_prompt(request: NavigationRequest) -> NavigationPrompt:
    """Pure: identical requests always yield identical prompts."""
    low, high = option_target(request)
    path_text = " > ".join(request.path_labels) if request.path else ROOT_MARKER
    instructions = "\n".join([
        "You are a taxonomy generator that proposes the next drill-down step.",
        "Return STRICT JSON ONLY: one JSON object, no markdown, no commentary.",
        f"Schema: {jsonx.dumps(OUTPUT_SCHEMA)}",
        "Rules:",
        "- Options must be mutually distinct; no duplicates or near-synonyms.",
        "- Keep labels short and descriptions to one short sentence.",
        "- Ids are deterministic lowercase slugs derived from the label (a-z, 0-9, '-').",
        f"- Group the options into {BUCKET_RANGE[0]}-{BUCKET_RANGE[1]} semantically meaningful buckets;"
        " every bucket lists option_ids taken from options.",
        "- Set can_confirm_here to true only when the current path is specific enough to stop.",
    ])
    body = "\n".join([
        f"Level0: {request.domain}",
        f"Current path: {path_text}",
        f"Depth: {request.depth}",
        f"Generate between {low} and {high} next subcategories for the next drill step.",
    ])
    return NavigationPrompt(instructions=instructions, body=body, min_options=low, max_options=high)
