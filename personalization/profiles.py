"""
Per-owner keyword affinity profiles.

Two parallel stores: one keyed by authenticated user id, one keyed by
anonymous session id. When a signal carries both identifiers, both
profiles are updated.

Profiles only grow: there is no decay and no eviction.
"""

import logging
from collections import defaultdict
from typing import Dict, Iterable, Mapping, Optional

from config import PROFILE_QUERY_INCREMENT, PROFILE_VIEW_INCREMENT

logger = logging.getLogger(__name__)


class PreferenceProfiles:
    """
    Keyword affinity stores for users and sessions.

    Usage:
        profiles = PreferenceProfiles()
        profiles.observe_query(["smartphone"], user_id=7)
        profiles.observe_view({"camera": 1.0}, session_id="abc")
        profiles.user_profile(7)   # {'smartphone': 0.5}
    """

    def __init__(self):
        # Structure: {user_id: {keyword: affinity}}
        self._users: Dict[int, Dict[str, float]] = defaultdict(dict)

        # Structure: {session_id: {keyword: affinity}}
        self._sessions: Dict[str, Dict[str, float]] = defaultdict(dict)

    def _owner_profiles(self, user_id, session_id):
        owners = []
        if user_id is not None:
            owners.append(self._users[user_id])
        if session_id:
            owners.append(self._sessions[session_id])
        return owners

    def observe_query(
        self,
        keywords: Iterable[str],
        user_id: Optional[int] = None,
        session_id: Optional[str] = None,
    ) -> None:
        """Add PROFILE_QUERY_INCREMENT per query keyword occurrence."""
        keywords = list(keywords)
        for profile in self._owner_profiles(user_id, session_id):
            for keyword in keywords:
                profile[keyword] = profile.get(keyword, 0.0) + PROFILE_QUERY_INCREMENT

    def observe_view(
        self,
        product_keywords: Mapping[str, float],
        user_id: Optional[int] = None,
        session_id: Optional[str] = None,
    ) -> None:
        """Add PROFILE_VIEW_INCREMENT × keyword weight for each keyword of a viewed product."""
        for profile in self._owner_profiles(user_id, session_id):
            for keyword, weight in product_keywords.items():
                profile[keyword] = profile.get(keyword, 0.0) + PROFILE_VIEW_INCREMENT * weight

    def user_preferences(self, user_id: Optional[int]) -> Mapping[str, float]:
        """Live read-only view used by the ranker (empty for unknown users)."""
        if user_id is None:
            return {}
        return self._users.get(user_id, {})

    def session_preferences(self, session_id: Optional[str]) -> Mapping[str, float]:
        if not session_id:
            return {}
        return self._sessions.get(session_id, {})

    def user_profile(self, user_id: int) -> Dict[str, float]:
        return dict(self.user_preferences(user_id))

    def session_profile(self, session_id: str) -> Dict[str, float]:
        return dict(self.session_preferences(session_id))

    @property
    def num_users(self) -> int:
        return len(self._users)

    @property
    def num_sessions(self) -> int:
        return len(self._sessions)

    def clear(self) -> None:
        self._users.clear()
        self._sessions.clear()
