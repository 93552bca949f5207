#!/usr/bin/env python3
"""Example: Restrictions and YAML graphs

Demonstrates loading a graph from YAML, filling restriction accumulators
along successful paths, and reading the merged result.

Usage:
    python examples/02_restrictions.py

Requirements:
    pip install aumos-acl-graph
"""
from __future__ import annotations

import asyncio

from aumos_acl_graph import (
    ContextScope,
    FieldsByIdRestriction,
    FieldsRestriction,
    GraphLoader,
    NoIdRestrictionError,
)

USERS = {
    "elliot": {"id": 1, "name": "elliot", "is_moderator": True},
    "angela": {"id": 2, "name": "angela", "is_moderator": False},
}


async def authenticate(scope: ContextScope) -> bool:
    user = USERS.get(scope.get("token", ""))
    if user is None:
        return False
    scope["user"] = user
    return True


def is_moderator(scope: ContextScope) -> bool:
    return bool(scope["user"]["is_moderator"])


def own_profile(scope: ContextScope, by_id: FieldsByIdRestriction) -> None:
    by_id.allow_some([scope["user"]["id"]], ["email", "name"])


def public_fields(scope: ContextScope, fields: FieldsRestriction) -> None:
    fields.allow(["id", "name"])


def moderation_fields(scope: ContextScope, by_id: FieldsByIdRestriction) -> None:
    by_id.allow_all(["id", "name", "email", "banned"])


GRAPH_YAML = """
version: "1"
acl:
  default_node: public
edges:
  - from: public
    to: authenticated
    explain: "Token names a known user"
    check: authenticate
  - from: authenticated
    to: can_read_users
    explain: "Users read their own profile and public fields"
    restrict:
      by_id: own_profile
      fields: public_fields
  - from: authenticated
    to: moderator
    explain: "User is a moderator"
    check: is_moderator
  - from: moderator
    to: can_read_users
    explain: "Moderators read every profile"
    restrict:
      by_id: moderation_fields
"""

REGISTRY = {
    "authenticate": authenticate,
    "is_moderator": is_moderator,
    "own_profile": own_profile,
    "public_fields": public_fields,
    "moderation_fields": moderation_fields,
}


async def main() -> None:
    # Step 1: Load the graph with a registry resolver
    acl = GraphLoader(resolver=REGISTRY.__getitem__).load_from_yaml_string(GRAPH_YAML)
    print(f"Loaded {acl.graph.edge_count} edges over {len(acl.graph.nodes)} nodes")

    # Step 2: Check with restrictions for each user
    for token in ("angela", "elliot", "mallory"):
        fields = FieldsRestriction()
        by_id = FieldsByIdRestriction()
        result = await acl.check(
            "can_read_users", {"token": token}, {"fields": fields, "by_id": by_id}
        )
        print(f"\n[{token}] {'GRANTED' if result is not None else 'DENIED'}")
        if result is None:
            continue
        print(f"  Public fields: {sorted(fields.fields)}")
        try:
            print(f"  Readable ids:  {by_id.get_allowed_ids()}")
        except NoIdRestrictionError:
            print("  Readable ids:  every id")
        print(f"  Can read email of user 1: {by_id.field_is_allowed(1, 'email')}")


if __name__ == "__main__":
    asyncio.run(main())
