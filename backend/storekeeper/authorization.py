# Overview: Capability check injected into the app; gates every mutating service call.

"""
Authorization boundary.

The core never decides who may write. It asks an injected predicate,
``authorizer(actor_id) -> bool``, registered on the app by ``init_app``.
Identity lookup (turning a login into an actor id) happens outside this
package.
"""

from __future__ import annotations

from typing import Callable, Iterable

from flask import Flask, current_app

from .errors import AuthorizationError

Authorizer = Callable[[str | None], bool]

EXTENSION_KEY = "storekeeper.authorizer"


class AllowListAuthorizer:
    """Default authorizer: actor ids listed in config are allowed, everyone else is not."""

    def __init__(self, actor_ids: Iterable[str]):
        self.actor_ids = frozenset(str(a).strip() for a in actor_ids if a is not None and str(a).strip())

    @classmethod
    def from_config(cls, value) -> "AllowListAuthorizer":
        if not value:
            return cls(())
        if isinstance(value, str):
            return cls(value.split(","))
        return cls(value)

    def __call__(self, actor_id: str | None) -> bool:
        if actor_id is None:
            return False
        return str(actor_id).strip() in self.actor_ids

    def __repr__(self) -> str:
        return f"<AllowListAuthorizer actors={sorted(self.actor_ids)}>"


def init_app(app: Flask, authorizer: Authorizer | None = None) -> None:
    if authorizer is None:
        authorizer = AllowListAuthorizer.from_config(app.config.get("AUTHORIZED_ACTORS"))
    app.extensions[EXTENSION_KEY] = authorizer


def is_authorized(actor_id: str | None) -> bool:
    authorizer = current_app.extensions.get(EXTENSION_KEY)
    if authorizer is None:
        return False
    return bool(authorizer(actor_id))


def require_authorized(actor_id: str | None, action: str) -> None:
    """Raise AuthorizationError unless the actor may perform ``action``."""
    if not is_authorized(actor_id):
        current_app.logger.warning("Denied %s for actor %r", action, actor_id)
        raise AuthorizationError(
            "Not authorized to perform this action",
            details={"action": action},
        )
