"""Explicit binding of signed-in profiles to the child they act for."""

from __future__ import annotations

from typing import Dict, Mapping, Optional


class ProfileDirectory:
    """Lookup table ``profile id -> child id``, resolved once per request.

    Parent profiles are usually unbound and act on whichever child the caller
    names explicitly.
    """

    def __init__(self, bindings: Optional[Mapping[str, str]] = None) -> None:
        self._bindings: Dict[str, str] = {}
        for profile_id, child_id in (bindings or {}).items():
            self.bind(profile_id, child_id)

    @staticmethod
    def _normalize(profile_id: str) -> str:
        normalized = profile_id.strip().lower()
        if not normalized:
            raise ValueError("Profile id cannot be empty.")
        return normalized

    def bind(self, profile_id: str, child_id: str) -> None:
        self._bindings[self._normalize(profile_id)] = child_id

    def unbind(self, profile_id: str) -> None:
        self._bindings.pop(self._normalize(profile_id), None)

    def resolve(self, profile_id: Optional[str]) -> Optional[str]:
        if not profile_id or not profile_id.strip():
            return None
        return self._bindings.get(self._normalize(profile_id))

    def child_for(self, profile_id: Optional[str], requested_child_id: Optional[str]) -> Optional[str]:
        """A bound profile always acts for its own child; others use the request."""
        return self.resolve(profile_id) or requested_child_id


__all__ = ["ProfileDirectory"]
