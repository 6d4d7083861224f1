"""
Backend request payload construction
"""
import copy
import json
from typing import Any, Dict, Optional

from llamanator.core.config import Settings
from llamanator.core.exceptions import SerializationError


def select_model(default_model: str, requested_model: Optional[str] = None) -> str:
    """Requested model if non-empty, otherwise the configured default"""
    if requested_model:
        return requested_model
    return default_model


def build_backend_payload(
    settings: Settings,
    rendered_prompt: str,
    requested_model: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Merge static backend parameters with the per-request prompt and model

    The static parameters are copied; the settings mapping is never modified,
    so concurrent requests cannot see each other's prompt or model.

    Args:
        settings: Gateway settings holding ollama_params and default_model
        rendered_prompt: Prompt produced by the template
        requested_model: Model named in the request, if any

    Returns:
        Fresh payload dict
    """
    payload = copy.deepcopy(settings.ollama_params)
    payload["prompt"] = rendered_prompt
    payload["model"] = select_model(settings.default_model, requested_model)
    return payload


def encode_payload(payload: Dict[str, Any]) -> bytes:
    """
    JSON-encode a backend payload

    Raises:
        SerializationError: If the payload holds values JSON cannot represent
    """
    try:
        return json.dumps(payload, ensure_ascii=False, allow_nan=False).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Error marshaling backend request: {e}") from e
