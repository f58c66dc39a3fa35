"""Common exception classes for the UI blocking registry.

Registry mutations never raise for bad data; these exceptions cover
structural wiring mistakes and invalid schedule values.
"""

from typing import Optional, Dict, Any


class GuardError(Exception):
    """Base exception for all registry-related errors."""
    
    def __init__(self, message: str, code: Optional[str] = None, 
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for structured logging."""
        result = {"message": self.message}
        if self.code:
            result["code"] = self.code
        if self.details:
            result["details"] = self.details
        return result


class RegistryContextError(GuardError):
    """Raised when a context-bound registry accessor is used outside a registry context."""
    
    def __init__(self, message: str = "No registry bound to the current context", **kwargs):
        super().__init__(message, code="CONTEXT_ERROR", **kwargs)


class ScheduleError(GuardError):
    """Raised when a blocking schedule cannot be interpreted."""
    
    def __init__(self, message: str = "Invalid blocking schedule", **kwargs):
        super().__init__(message, code="SCHEDULE_ERROR", **kwargs)
