"""
Gateway error taxonomy
"""
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(str, Enum):
    """Error categories for classification"""
    STARTUP = "startup"  # Aborts process start
    CLIENT = "client"  # Caller sent something wrong
    TEMPLATE = "template"  # Template loading or rendering
    BACKEND = "backend"  # Backend unreachable or misbehaving
    INTERNAL = "internal"  # Encoding faults inside the gateway


class GatewayError(Exception):
    """Base class for all gateway errors"""

    status_code: int = 500
    category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(self, message: str, metadata: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.metadata = metadata or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary"""
        return {
            "error_type": type(self).__name__,
            "message": self.message,
            "category": self.category.value,
            "status_code": self.status_code,
            "metadata": self.metadata,
        }


class ConfigLoadError(GatewayError):
    """Configuration could not be loaded (fatal at startup)"""
    category = ErrorCategory.STARTUP


class TemplateLoadError(GatewayError):
    """A template source file could not be read or parsed"""
    category = ErrorCategory.TEMPLATE


class AuthFailure(GatewayError):
    """Presented bearer token does not match"""
    status_code = 401
    category = ErrorCategory.CLIENT


class InvalidRequest(GatewayError):
    """Request body is not valid JSON or lacks a string query"""
    status_code = 400
    category = ErrorCategory.CLIENT


class TemplateNotFound(GatewayError):
    """No template is registered under the requested name"""
    status_code = 404
    category = ErrorCategory.CLIENT


class RenderError(GatewayError):
    """Template execution failed"""
    category = ErrorCategory.TEMPLATE


class BackendUnavailable(GatewayError):
    """Backend call failed at the transport level or returned an error status"""
    category = ErrorCategory.BACKEND


class BackendTimeout(BackendUnavailable, TimeoutError):
    """Backend call exceeded the configured deadline"""


class SerializationError(GatewayError):
    """Payload or response could not be JSON-encoded"""


class BackendDecodeError(GatewayError):
    """Backend response body is not a JSON object"""
    category = ErrorCategory.BACKEND
