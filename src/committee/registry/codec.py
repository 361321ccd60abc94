"""Wire format for member records and the member index.

Both are UTF-8 JSON:
    member_keys   → ["1718000000000-a1b2c3d4", ...]
    member_{id}   → {"address": ..., "joinedDate": ..., "role": ..., "reputation": ...}

Decoding is strict about shape and types so that a half-written or
foreign blob is rejected as a whole (DecodeError) instead of leaking
malformed members into the roster. Callers decide how to recover.
"""

from __future__ import annotations

import json
from typing import Any

from committee.errors import DecodeError, InvalidMemberError
from committee.models.member import CommitteeMember, Role, validate_reputation


INDEX_KEY = "member_keys"
MEMBER_KEY_PREFIX = "member_"


def member_key(member_id: str) -> str:
    return f"{MEMBER_KEY_PREFIX}{member_id}"


def encode_member(member: CommitteeMember) -> bytes:
    """Encode a member record. The id lives in the key, not the body."""
    body = {
        "address": member.address,
        "joinedDate": member.joined_date,
        "role": member.role.value,
        "reputation": member.reputation,
    }
    return json.dumps(body, ensure_ascii=False).encode("utf-8")


def decode_member(member_id: str, raw: bytes) -> CommitteeMember:
    data = _parse_json(raw, f"member {member_id}")
    if not isinstance(data, dict):
        raise DecodeError(f"member {member_id}: expected an object")

    address = data.get("address")
    joined = data.get("joinedDate")
    if not isinstance(address, str) or not address:
        raise DecodeError(f"member {member_id}: missing address")
    if isinstance(joined, bool) or not isinstance(joined, int):
        raise DecodeError(f"member {member_id}: joinedDate must be an integer")

    try:
        role = Role.parse(data.get("role"))
        reputation = validate_reputation(data.get("reputation"))
    except InvalidMemberError as exc:
        raise DecodeError(f"member {member_id}: {exc}") from exc

    return CommitteeMember(
        member_id=member_id,
        address=address,
        joined_date=joined,
        role=role,
        reputation=reputation,
    )


def encode_index(member_ids: list[str]) -> bytes:
    return json.dumps(list(member_ids)).encode("utf-8")


def decode_index(raw: bytes) -> list[str]:
    """Decode the index blob. An empty blob is an empty index."""
    if not raw:
        return []
    data = _parse_json(raw, "member index")
    if not isinstance(data, list) or not all(isinstance(k, str) for k in data):
        raise DecodeError("member index: expected a list of strings")
    return data


def _parse_json(raw: bytes, what: str) -> Any:
    try:
        return json.loads(bytes(raw).decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise DecodeError(f"{what}: {exc}") from exc
