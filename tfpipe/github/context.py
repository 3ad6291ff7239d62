"""
Trigger context from the GitHub Actions runner environment.
"""

from __future__ import annotations

import json
import os
import re
import uuid
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from loguru import logger

from tfpipe.pipeline.models import TriggerContext

# Event used outside Actions; it only runs the checks stage
LOCAL_EVENT = "local"

PULL_REF_PATTERN = re.compile(r'^refs/pull/(\d+)/(merge|head)$')


def _read_event_payload(path: Optional[str]) -> Dict[str, Any]:
    if not path:
        return {}
    try:
        with open(Path(path), encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"Cannot read event payload {path}: {e}")
        return {}
    return data if isinstance(data, dict) else {}


def _pr_number(payload: Dict[str, Any], ref: Optional[str]) -> Optional[int]:
    number = (payload.get("pull_request") or {}).get("number") or payload.get("number")
    if number is not None:
        try:
            return int(number)
        except (TypeError, ValueError):
            pass
    if ref:
        match = PULL_REF_PATTERN.match(ref)
        if match:
            return int(match.group(1))
    return None


def trigger_from_env(
    environ: Optional[Mapping[str, str]] = None,
    **overrides: Any,
) -> TriggerContext:
    """
    Build a TriggerContext from GITHUB_* variables.

    Keyword overrides (event_name, actor, repository, base_ref, pr_number, ...)
    win over the environment when not None. Outside Actions the event defaults
    to "local", which runs only the checks stage, and a random run id is
    generated. Destroy needs an explicit workflow_dispatch event.
    """
    env = os.environ if environ is None else environ
    payload = _read_event_payload(env.get("GITHUB_EVENT_PATH"))

    values: Dict[str, Any] = {
        "event_name": env.get("GITHUB_EVENT_NAME") or LOCAL_EVENT,
        "actor": env.get("GITHUB_ACTOR") or env.get("USER", ""),
        "repository": env.get("GITHUB_REPOSITORY") or None,
        "base_ref": env.get("GITHUB_BASE_REF") or None,
        "head_ref": env.get("GITHUB_HEAD_REF") or None,
        "pr_number": _pr_number(payload, env.get("GITHUB_REF")),
        "run_id": env.get("GITHUB_RUN_ID") or uuid.uuid4().hex[:12],
        "sha": env.get("GITHUB_SHA") or None,
    }
    for key, value in overrides.items():
        if key not in values:
            raise TypeError(f"Unknown trigger field: {key}")
        if value is not None:
            values[key] = value

    return TriggerContext(**values)
