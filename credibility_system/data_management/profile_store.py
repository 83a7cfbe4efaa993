"""Profile storage keyed by user_id, with credibility counters.

Design notes:
- A profile row may not exist before the first credibility award;
  upsert_credibility() and increment_credibility() create it.
- get_credibility() and upsert_credibility() are separate calls, so a
  read-then-write by the caller is not atomic across awaits.
  increment_credibility() runs under the store lock and is.

Usage:
    from credibility_system.data_management.profile_store import ProfileStore

    store = ProfileStore()
    await store.upsert_credibility("user-a", 3)
    summaries = await store.get_credibility_batch(["user-a", "user-b"])
"""

import asyncio
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Optional

from pydantic import ValidationError

from credibility_system.data_management.errors import RecordNotFoundError
from credibility_system.data_management.schemas import (
    EDITABLE_PROFILE_FIELDS,
    CredibilitySummary,
    Profile,
)
from credibility_system.utils.logging import get_structured_logger


class ProfileStore:
    """Storage for user profiles.

    Data structure:
    {
        user_id: Profile,
        ...
    }
    """

    def __init__(self, persistence_path: Optional[str] = None) -> None:
        """Initialize ProfileStore.

        Args:
            persistence_path: Optional path to JSON file for persistence.
                            If None, storage is memory-only.
        """
        self._profiles: dict[str, Profile] = {}
        self._lock = asyncio.Lock()
        self._persistence_path = Path(persistence_path) if persistence_path else None
        self.load_error: Optional[str] = None
        self._logger = get_structured_logger(__name__, component="ProfileStore")

        if self._persistence_path and self._persistence_path.exists():
            self._load_from_file()

    async def add_profile(self, profile: Profile) -> Profile:
        """Store a complete profile, replacing any existing one."""
        async with self._lock:
            self._profiles[profile.user_id] = profile
            self._persist()
            return profile

    async def get_profile(self, user_id: str) -> Optional[Profile]:
        """Get a profile by user_id, or None."""
        async with self._lock:
            return self._profiles.get(user_id)

    async def get_credibility(self, user_id: str) -> Optional[int]:
        """Get a user's credibility, or None when no profile exists."""
        async with self._lock:
            profile = self._profiles.get(user_id)
            return profile.credibility if profile else None

    async def upsert_credibility(self, user_id: str, value: int) -> None:
        """Create or update a user's credibility.

        Args:
            user_id: Profile key.
            value: New credibility value.
        """
        async with self._lock:
            self._set_credibility(user_id, value)
            self._logger.debug("credibility_upserted", user_id=user_id, credibility=value)
            self._persist()

    async def increment_credibility(self, user_id: str, amount: int = 1) -> int:
        """Atomically add to a user's credibility, creating the profile if absent.

        Returns:
            The new credibility value.
        """
        async with self._lock:
            profile = self._profiles.get(user_id)
            new_value = (profile.credibility if profile else 0) + amount
            self._set_credibility(user_id, new_value)
            self._logger.debug("credibility_incremented", user_id=user_id, credibility=new_value)
            self._persist()
            return new_value

    async def update_profile(self, user_id: str, **fields: Any) -> Profile:
        """Partially update editable profile fields.

        Only full_name, age, job and avatar_url are accepted; unknown keys
        raise ValueError. Fields passed as None are cleared.

        Raises:
            RecordNotFoundError: If the user has no profile yet.
        """
        unknown = set(fields) - set(EDITABLE_PROFILE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown profile fields: {sorted(unknown)}")

        async with self._lock:
            profile = self._profiles.get(user_id)
            if profile is None:
                raise RecordNotFoundError(
                    f"No profile exists for user {user_id}",
                    code="PGRST116",
                )
            updated = profile.model_copy(
                update={**fields, "updated_at": datetime.now(timezone.utc)}
            )
            self._profiles[user_id] = updated
            self._logger.info("profile_updated", user_id=user_id, fields=sorted(fields))
            self._persist()
            return updated

    async def get_credibility_batch(
        self,
        user_ids: Iterable[str],
    ) -> dict[str, CredibilitySummary]:
        """Look up credibility and display name for many users at once.

        Every requested id appears in the result; users without a profile
        get credibility 0 and no name. Blank ids are dropped.
        """
        wanted = clean_user_ids(user_ids)
        async with self._lock:
            result: dict[str, CredibilitySummary] = {}
            for uid in wanted:
                profile = self._profiles.get(uid)
                result[uid] = CredibilitySummary(
                    user_id=uid,
                    credibility=profile.credibility if profile else 0,
                    full_name=profile.full_name if profile else None,
                )
            return result

    def _set_credibility(self, user_id: str, value: int) -> None:
        profile = self._profiles.get(user_id)
        now = datetime.now(timezone.utc)
        if profile is None:
            self._profiles[user_id] = Profile(user_id=user_id, credibility=value)
        else:
            self._profiles[user_id] = profile.model_copy(
                update={"credibility": value, "updated_at": now}
            )

    def _persist(self) -> None:
        if self._persistence_path:
            self._save_to_file()

    def _save_to_file(self) -> None:
        """Save to JSON file (synchronous)."""
        try:
            self._persistence_path.parent.mkdir(parents=True, exist_ok=True)
            data = {
                uid: profile.model_dump(mode="json")
                for uid, profile in self._profiles.items()
            }
            with open(self._persistence_path, "w") as f:
                json.dump(data, f, indent=2, default=str)
        except Exception as e:
            self._logger.error("persistence_failed", error=str(e))

    def _load_from_file(self) -> None:
        """Load profiles from JSON file. Accepts a list or a user_id-keyed mapping."""
        try:
            with open(self._persistence_path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            self.load_error = str(e)
            self._logger.error("load_failed", path=str(self._persistence_path), error=str(e))
            return

        if not isinstance(data, (list, dict)):
            self.load_error = f"expected a list or object, got {type(data).__name__}"
            self._logger.error("load_failed", path=str(self._persistence_path), error=self.load_error)
            return

        rows = data.values() if isinstance(data, dict) else data
        skipped = 0
        for index, row in enumerate(rows):
            try:
                profile = Profile.model_validate(row)
            except ValidationError as e:
                skipped += 1
                self._logger.warning("row_skipped", index=index, errors=e.error_count())
                continue
            self._profiles[profile.user_id] = profile

        self._logger.info("profiles_loaded", count=len(self._profiles), skipped=skipped)


def clean_user_ids(user_ids: Iterable[str]) -> list[str]:
    """Trim ids, drop blanks and duplicates, keep first-seen order."""
    seen: dict[str, None] = {}
    for uid in user_ids:
        uid = (uid or "").strip()
        if uid:
            seen.setdefault(uid, None)
    return list(seen)
