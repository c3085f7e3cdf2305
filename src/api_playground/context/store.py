"""JSON-file backed store for API contexts.

One file holds every context plus the id of the active one. Writes are
last-writer-wins; there is no locking across processes.
"""

import json
import logging
from collections import Counter
from pathlib import Path

from pydantic import BaseModel, ValidationError

from api_playground.context.models import ApiContext, generate_context_id, now_ms
from api_playground.errors import ContextNotFound, MalformedInput

logger = logging.getLogger(__name__)

MAX_CONTEXTS = 20


class StoreState(BaseModel):
    contexts: list[ApiContext] = []
    active_context_id: str | None = None
    last_updated: int = 0


class ContextStats(BaseModel):
    total_endpoints: int
    method_counts: dict[str, int]
    tag_counts: dict[str, int]
    endpoints_with_auth: int
    auth_percentage: float
    created_at: int
    last_updated: int


class ContextStore:
    """CRUD over saved contexts. ``path=None`` keeps everything in memory."""

    def __init__(self, path: Path | str | None = None, max_contexts: int = MAX_CONTEXTS):
        self.path = Path(path).expanduser() if path is not None else None
        self.max_contexts = max_contexts
        self._memory = StoreState()

    def _load(self) -> StoreState:
        if self.path is None:
            return self._memory.model_copy(deep=True)
        if not self.path.exists():
            return StoreState()
        try:
            return StoreState.model_validate_json(self.path.read_text(encoding="utf-8"))
        except ValidationError as e:
            logger.error("Context store %s is unreadable, starting empty: %s", self.path, e)
            return StoreState()

    def _save(self, state: StoreState) -> None:
        state.last_updated = now_ms()
        if self.path is None:
            self._memory = state
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(state.model_dump_json(indent=2, by_alias=True), encoding="utf-8")

    def save(self, context: ApiContext) -> ApiContext:
        """Insert a new context at the front, or replace one with the same id."""
        state = self._load()
        for i, existing in enumerate(state.contexts):
            if existing.id == context.id:
                context = context.model_copy(update={"last_updated": now_ms()})
                state.contexts[i] = context
                break
        else:
            state.contexts.insert(0, context)
            dropped = state.contexts[self.max_contexts:]
            if dropped:
                logger.info("Context store full; dropping %d oldest contexts", len(dropped))
            state.contexts = state.contexts[: self.max_contexts]
        self._save(state)
        return context

    def get(self, context_id: str) -> ApiContext | None:
        return next((c for c in self._load().contexts if c.id == context_id), None)

    def get_all(self) -> list[ApiContext]:
        """All contexts, most recently updated first."""
        return sorted(self._load().contexts, key=lambda c: c.last_updated, reverse=True)

    def delete(self, context_id: str) -> bool:
        state = self._load()
        remaining = [c for c in state.contexts if c.id != context_id]
        removed = len(remaining) != len(state.contexts)
        state.contexts = remaining
        if state.active_context_id == context_id:
            state.active_context_id = None
        self._save(state)
        return removed

    def set_active(self, context_id: str | None) -> str | None:
        """Mark a context active; unknown ids clear the active context."""
        state = self._load()
        if context_id is not None and not any(c.id == context_id for c in state.contexts):
            logger.warning("No context with id %s; clearing active context", context_id)
            context_id = None
        state.active_context_id = context_id
        self._save(state)
        return context_id

    def get_active(self) -> ApiContext | None:
        state = self._load()
        if state.active_context_id is None:
            return None
        return next((c for c in state.contexts if c.id == state.active_context_id), None)

    def clear(self) -> None:
        self._save(StoreState())

    def search(self, query: str) -> list[ApiContext]:
        needle = query.lower()
        return [
            c
            for c in self._load().contexts
            if needle in c.name.lower()
            or needle in c.base_url.lower()
            or (c.description is not None and needle in c.description.lower())
        ]

    def export_context(self, context_id: str) -> str:
        context = self.get(context_id)
        if context is None:
            raise ContextNotFound(context_id)
        return context.model_dump_json(indent=2, by_alias=True)

    def import_context(self, text: str) -> ApiContext:
        """Save a context from exported JSON under a fresh id."""
        try:
            data = json.loads(text)
        except ValueError as e:
            raise MalformedInput(f"Failed to import context: {e}") from e
        if not isinstance(data, dict) or not data.get("name") or not data.get("base_url") \
                or not isinstance(data.get("endpoints"), list):
            raise MalformedInput("Failed to import context: invalid context format")

        now = now_ms()
        data.update(id=generate_context_id(), created_at=now, last_updated=now)
        try:
            context = ApiContext.model_validate(data)
        except ValidationError as e:
            raise MalformedInput(f"Failed to import context: {e}") from e
        return self.save(context)

    def stats(self, context_id: str) -> ContextStats:
        context = self.get(context_id)
        if context is None:
            raise ContextNotFound(context_id)

        total = len(context.endpoints)
        with_auth = sum(1 for e in context.endpoints if e.auth_required)
        return ContextStats(
            total_endpoints=total,
            method_counts=dict(Counter(e.method for e in context.endpoints)),
            tag_counts=dict(Counter(tag for e in context.endpoints for tag in e.tags)),
            endpoints_with_auth=with_auth,
            auth_percentage=with_auth / total * 100 if total else 0.0,
            created_at=context.created_at,
            last_updated=context.last_updated,
        )
