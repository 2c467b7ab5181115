"""Profile data models and their wire encoding.

A UserProfile is stored as canonical JSON (sorted keys, compact separators)
so the same profile value always produces the same byte sequence. Unknown
keys found in stored JSON are kept and written back on the next store.
"""

import json
import time
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .constants import CONTENT_TYPE, PROFILE_TYPE


REQUIRED_FIELDS = ("email", "firstname", "lastname", "username")
# Fields a patch may overwrite but never clear
NON_NULLABLE_FIELDS = REQUIRED_FIELDS + ("createdAt",)
OPTIONAL_FIELDS = (
    "profile_picture",
    "twitter_url",
    "instagram_url",
    "facebook_url",
    "linkedin_url",
    "discord",
)


def now_ms() -> int:
    """Current time as integer milliseconds since the Unix epoch."""
    return int(time.time() * 1000)


class UserProfile(BaseModel):
    """A user profile record.

    Timestamps are integer milliseconds. Optional fields are opaque strings;
    no format validation is done on URLs or handles.
    """
    model_config = ConfigDict(extra="allow")

    email: str
    firstname: str
    lastname: str
    username: str                          # Display/lookup hint, not unique
    profile_picture: Optional[str] = None
    twitter_url: Optional[str] = None
    instagram_url: Optional[str] = None
    facebook_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    discord: Optional[str] = None
    createdAt: int
    updatedAt: int

    @classmethod
    def new(cls, data: Optional[Mapping[str, Any]] = None, /, **fields: Any) -> "UserProfile":
        """Create a fresh profile with createdAt == updatedAt == now.

        Fields may be given as a mapping (any keys, e.g. decoded JSON),
        as keyword arguments, or both; missing timestamps are set to now.
        """
        values = dict(data or {})
        values.update(fields)
        timestamp = now_ms()
        values.setdefault("createdAt", timestamp)
        values.setdefault("updatedAt", timestamp)
        return cls.model_validate(values)

    def to_dict(self) -> Dict[str, Any]:
        """Plain dict with absent optional fields omitted."""
        data = self.model_dump()
        for name in OPTIONAL_FIELDS:
            if data.get(name) is None:
                data.pop(name, None)
        return data

    def to_json_deterministic(self) -> str:
        """
        Deterministic serialization for reproducible blobs.

        Pydantic v2 doesn't accept sort_keys in model_dump_json,
        so we use json.dumps with sort_keys=True.
        """
        return json.dumps(
            self.to_dict(),
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
        )

    def to_bytes(self) -> bytes:
        return self.to_json_deterministic().encode("utf-8")

    @classmethod
    def from_bytes(cls, data: bytes) -> "UserProfile":
        """Decode stored bytes.

        Raises:
            pydantic.ValidationError: If data is not JSON or not a profile
        """
        return cls.model_validate_json(data)


class ProfilePatch(BaseModel):
    """Sparse set of profile fields to overwrite.

    Only fields explicitly given are applied. An explicit None clears an
    optional field; required fields cannot be cleared.
    """
    model_config = ConfigDict(extra="allow")

    email: Optional[str] = None
    firstname: Optional[str] = None
    lastname: Optional[str] = None
    username: Optional[str] = None
    profile_picture: Optional[str] = None
    twitter_url: Optional[str] = None
    instagram_url: Optional[str] = None
    facebook_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    discord: Optional[str] = None
    createdAt: Optional[int] = None
    updatedAt: Optional[int] = None        # Accepted but always overwritten on merge

    @model_validator(mode="after")
    def _validate_required_not_cleared(self):
        cleared = sorted(
            name for name in NON_NULLABLE_FIELDS
            if name in self.model_fields_set and getattr(self, name) is None
        )
        if cleared:
            raise ValueError(f"Cannot clear required profile fields: {cleared}")
        return self

    def changes(self) -> Dict[str, Any]:
        """Fields explicitly set on this patch, including unknown keys."""
        declared = type(self).model_fields
        data = {
            name: getattr(self, name)
            for name in self.model_fields_set
            if name in declared
        }
        data.update(self.model_extra or {})
        return data


def merge_profile(
    existing: UserProfile,
    patch: Union[ProfilePatch, Mapping[str, Any]],
    now: Optional[int] = None,
) -> UserProfile:
    """Apply a patch on top of an existing profile.

    Patch fields overwrite, everything else carries over. updatedAt always
    comes from the clock, never from the patch, and is kept strictly greater
    than the previous value and never earlier than createdAt.

    Args:
        existing: Profile being updated
        patch: ProfilePatch or plain mapping of fields to overwrite
        now: Clock reading in ms (defaults to now_ms())

    Returns:
        New merged UserProfile
    """
    if not isinstance(patch, ProfilePatch):
        patch = ProfilePatch.model_validate(dict(patch))

    merged = existing.model_dump()
    merged.update(patch.changes())

    timestamp = now_ms() if now is None else now
    merged["updatedAt"] = max(timestamp, existing.updatedAt + 1, merged["createdAt"])
    return UserProfile.model_validate(merged)


class BlobUpload(BaseModel):
    """A single object handed to a blob store for writing."""
    identifier: str                                        # File name inside the quilt
    contents: bytes
    tags: Dict[str, str] = Field(default_factory=dict)     # Queryable metadata

    @property
    def size(self) -> int:
        return len(self.contents)


def build_upload(profile: UserProfile, timestamp: Optional[int] = None) -> BlobUpload:
    """Encode a profile and attach its descriptive tags."""
    timestamp = now_ms() if timestamp is None else timestamp
    return BlobUpload(
        identifier=f"profile_{profile.username}_{timestamp}.json",
        contents=profile.to_bytes(),
        tags={
            "content-type": CONTENT_TYPE,
            "profile-type": PROFILE_TYPE,
            "username": profile.username,
            "email": profile.email,
        },
    )
