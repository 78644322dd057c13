"""
Step 5: Parse model output.
The model may wrap its JSON in prose or code fences; take the outermost
{...} span and parse it strictly. Shape checks stop at "is it a list":
field validation belongs to reconcile.
"""

import json
import re

from errors import MalformedResponse
from models import RawAnalysis, StepReport


def extract_json(text):
    """Return the JSON object embedded in text. Raises MalformedResponse."""
    cleaned = re.sub(r'```json\s*', '', text or "")
    cleaned = re.sub(r'```\s*', '', cleaned).strip()
    m = re.search(r'\{.*\}', cleaned, re.DOTALL)
    if not m:
        raise MalformedResponse("no JSON object in model output")
    try:
        data = json.loads(m.group())
    except json.JSONDecodeError as e:
        raise MalformedResponse("invalid JSON: {}".format(e)) from e
    if not isinstance(data, dict):
        raise MalformedResponse("top-level JSON is not an object")
    return data


def run(text):
    """Returns (RawAnalysis, report). Raises MalformedResponse."""
    print("\n>>> PARSE: {} chars...".format(len(text or "")))
    report = StepReport("parse", items_in=1)

    data = extract_json(text)
    states = data.get("states")
    attacks = data.get("attacks")
    raw = RawAnalysis(
        raw_states=states if isinstance(states, list) else [],
        raw_attacks=attacks if isinstance(attacks, list) else [],
    )

    report.items_out = len(raw.raw_states) + len(raw.raw_attacks)
    print("    {} states, {} attacks".format(len(raw.raw_states), len(raw.raw_attacks)))
    return raw, report
