"""
Filtering of backend responses down to the fields clients asked for
"""
import json
from typing import Any, Dict, Iterable, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from llamanator.core.exceptions import BackendDecodeError, SerializationError


class OllamaGenerateResponse(BaseModel):
    """Backend generate response; unknown metadata fields are kept"""

    model_config = ConfigDict(extra="allow")

    response: str = ""
    model: Optional[str] = None
    done: Optional[bool] = None

    @field_validator("response", mode="before")
    @classmethod
    def coerce_response(cls, v: Any) -> str:
        """Absent or non-string response becomes an empty string"""
        return v if isinstance(v, str) else ""

    @field_validator("model", mode="before")
    @classmethod
    def coerce_model(cls, v: Any) -> Optional[str]:
        return v if isinstance(v, str) else None

    @field_validator("done", mode="before")
    @classmethod
    def coerce_done(cls, v: Any) -> Optional[bool]:
        return v if isinstance(v, bool) else None


def decode_backend_response(raw: bytes) -> Dict[str, Any]:
    """
    Parse a backend body into an open mapping

    Raises:
        BackendDecodeError: If the body is not a JSON object
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise BackendDecodeError(f"Error unmarshaling response from backend: {e}") from e
    if not isinstance(data, dict):
        raise BackendDecodeError(
            f"Backend response is a JSON {type(data).__name__}, expected an object"
        )
    return data


def project_response(
    raw: bytes,
    allowlist: Iterable[str],
    strip_newlines: bool = False,
) -> Dict[str, Any]:
    """
    Build the client response from a backend body

    Args:
        raw: Backend response body
        allowlist: Extra backend fields to copy, in output order
        strip_newlines: Replace newlines in 'response' with spaces

    Returns:
        Mapping with 'response' plus every allowlisted field the backend sent

    Raises:
        BackendDecodeError: If the body is not a JSON object
    """
    data = decode_backend_response(raw)
    text = OllamaGenerateResponse.model_validate(data).response
    if strip_newlines:
        text = text.replace("\n", " ")

    filtered: Dict[str, Any] = {"response": text}
    for field in allowlist:
        if field == "response" or field not in data:
            continue
        filtered[field] = data[field]
    return filtered


def encode_response(filtered: Dict[str, Any]) -> bytes:
    """
    JSON-encode a filtered response

    Raises:
        SerializationError: If the mapping cannot be encoded
    """
    try:
        return json.dumps(
            filtered, ensure_ascii=False, allow_nan=False, separators=(",", ":")
        ).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Error marshaling filtered response: {e}") from e
