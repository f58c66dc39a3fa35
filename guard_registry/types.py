#!/usr/bin/env python3
"""
Data types shared by the registry and its middleware.

BlockerConfig is what callers pass in (every field optional), BlockerInfo
is the immutable snapshot handed back out, and StoredBlocker is the
registry's own mutable record which additionally owns the timer handle.
"""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple, Union

from .scope import normalize_scope

ScopeValue = Union[str, Tuple[str, ...]]
TimeoutCallback = Callable[[str], Any]


class BlockingAction(str, Enum):
    """Mutation kinds reported to middleware."""
    ADD = "add"
    UPDATE = "update"
    REMOVE = "remove"
    TIMEOUT = "timeout"
    CLEAR = "clear"
    CLEAR_SCOPE = "clear_scope"


@dataclass(frozen=True)
class BlockerConfig:
    """
    Configuration for creating or updating a blocker.
    
    Every field is optional. On add, missing values fall back to the
    defaults (scope "global", reason "Unknown", priority 0, timestamp now).
    On update, None means "leave the stored value alone".
    
    Attributes:
        scope: One scope name or a sequence of names
        reason: Human-readable reason shown to users
        priority: Rank among blockers of the same scope; negatives become 0
        timestamp: Epoch milliseconds; defaults to now
        timeout: Remove the blocker automatically after this many ms (<= 0: never)
        on_timeout: Called with the blocker id right before a timeout removal
    """
    scope: Optional[Union[str, Tuple[str, ...], list]] = None
    reason: Optional[str] = None
    priority: Optional[int] = None
    timestamp: Optional[int] = None
    timeout: Optional[int] = None
    on_timeout: Optional[TimeoutCallback] = None
    
    @classmethod
    def field_names(cls) -> Tuple[str, ...]:
        return tuple(f.name for f in fields(cls))


@dataclass(frozen=True)
class BlockerInfo:
    """Read-only snapshot of a stored blocker, including its id."""
    id: str
    scope: ScopeValue
    reason: str
    priority: int
    timestamp: int
    timeout: Optional[int] = None
    on_timeout: Optional[TimeoutCallback] = field(default=None, compare=False, repr=False)
    
    @property
    def scopes(self):
        return normalize_scope(self.scope)
    
    def to_dict(self) -> Dict[str, Any]:
        result = {
            "id": self.id,
            "scope": list(self.scope) if isinstance(self.scope, tuple) else self.scope,
            "reason": self.reason,
            "priority": self.priority,
            "timestamp": self.timestamp,
        }
        if self.timeout is not None:
            result["timeout"] = self.timeout
        return result


@dataclass
class StoredBlocker:
    """Registry-internal record. Owns at most one live timer handle."""
    scope: ScopeValue
    reason: str
    priority: int
    timestamp: int
    timeout: Optional[int] = None
    on_timeout: Optional[TimeoutCallback] = None
    timer_handle: Any = None
    
    @property
    def scopes(self):
        return normalize_scope(self.scope)
    
    def snapshot(self, blocker_id: str) -> BlockerInfo:
        return BlockerInfo(
            id=blocker_id,
            scope=self.scope,
            reason=self.reason,
            priority=self.priority,
            timestamp=self.timestamp,
            timeout=self.timeout,
            on_timeout=self.on_timeout,
        )


@dataclass(frozen=True)
class MiddlewareEvent:
    """
    Immutable description of one completed registry mutation.
    
    prev_state is set for update/remove, scope and count for clear_scope,
    count alone for clear.
    """
    action: BlockingAction
    blocker_id: str
    timestamp: int
    config: Optional[BlockerInfo] = None
    prev_state: Optional[BlockerInfo] = None
    scope: Optional[str] = None
    count: Optional[int] = None
    
    def to_dict(self) -> Dict[str, Any]:
        """Serialize for logging; unset optional fields are omitted."""
        result: Dict[str, Any] = {
            "action": self.action.value,
            "blocker_id": self.blocker_id,
            "timestamp": self.timestamp,
        }
        if self.config is not None:
            result["config"] = self.config.to_dict()
        if self.prev_state is not None:
            result["prev_state"] = self.prev_state.to_dict()
        if self.scope is not None:
            result["scope"] = self.scope
        if self.count is not None:
            result["count"] = self.count
        return result
