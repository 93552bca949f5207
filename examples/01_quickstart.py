#!/usr/bin/env python3
"""Example: Quickstart — aumos-acl-graph

Minimal working example: declare a permission graph, check requests
against it, and explain a denial.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install aumos-acl-graph
"""
from __future__ import annotations

import asyncio

import aumos_acl_graph as acl_graph


async def get_user(user_id: object) -> dict[str, object]:
    users = {1: {"id": 1, "is_admin": True}, 2: {"id": 2, "is_admin": False}}
    if user_id not in users:
        raise LookupError("User not found")
    return users[user_id]


async def has_secret_key(scope: acl_graph.ContextScope) -> bool:
    return scope.get("key") == "super_secret"


async def is_admin(scope: acl_graph.ContextScope) -> bool:
    scope["user"] = await get_user(scope.get("user_id"))
    return bool(scope["user"]["is_admin"])


async def main() -> None:
    print(f"aumos-acl-graph version: {acl_graph.__version__}")

    # Step 1: Declare the graph
    acl = acl_graph.Acl("public", [
        {
            "from": "public",
            "to": "has_secret_key",
            "explain": "Super secret key must be passed",
            "check": has_secret_key,
        },
        {
            "from": "has_secret_key",
            "to": "is_admin",
            "explain": "User is an administrator",
            "check": is_admin,
        },
    ])
    print(f"ACL ready: {acl!r}")

    # Step 2: Check requests
    requests = [
        {},
        {"key": "super_secret", "user_id": 2},
        {"key": "super_secret", "user_id": 1},
    ]

    print("\nPermission checks for 'is_admin':")
    for context in requests:
        result = await acl.check("is_admin", context)
        icon = "GRANT" if result is not None else "DENY"
        print(f"  [{icon}] {context}")
        if result is not None:
            print(f"    Loaded user: {result['user']}")

    # Step 3: Explain a denial
    print("\nExplain for an unknown user:")
    for record in await acl.explain("is_admin", {"key": "super_secret", "user_id": 3}):
        print(f"  [{record.status.upper()}] {record.from_node} -> {record.to}: {record.explanation}")
        if record.error:
            print(f"    Error: {record.error}")


if __name__ == "__main__":
    asyncio.run(main())
