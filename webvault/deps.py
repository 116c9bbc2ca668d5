"""Request-scoped accessors for app services, and shared JSON error handlers."""

import logging

from flask import current_app, jsonify, session
from pydantic import ValidationError

from webvault.services.drive import DriveError
from webvault.services.file_tree import TreeCycleError
from webvault.services.store import DuplicatePathError, InvalidParentError, NotFoundError
from webvault.services.sync import VaultSync

logger = logging.getLogger(__name__)

DRIVE_TOKENS_KEY = "drive_tokens"


def get_store():
    return current_app.extensions["vault_store"]


def get_drive_auth():
    return current_app.extensions["drive_auth"]


def get_drive_client():
    """Drive client for the current session, or None when not connected."""
    tokens = session.get(DRIVE_TOKENS_KEY)
    if not tokens:
        return None
    return get_drive_auth().build_client(tokens)


def get_sync() -> VaultSync | None:
    drive = get_drive_client()
    if drive is None:
        return None
    return VaultSync(get_store(), drive)


def message(text: str, status: int, **extra):
    return jsonify({"message": text, **extra}), status


def register_error_handlers(bp) -> None:
    @bp.errorhandler(ValidationError)
    def invalid_payload(exc):
        return message(
            "Invalid request data",
            400,
            errors=exc.errors(include_url=False, include_context=False, include_input=False),
        )

    @bp.errorhandler(NotFoundError)
    def not_found(exc):
        return message(str(exc), 404)

    @bp.errorhandler(InvalidParentError)
    def invalid_parent(exc):
        return message(str(exc), 400)

    @bp.errorhandler(DuplicatePathError)
    def duplicate_path(exc):
        return message(str(exc), 409)

    @bp.errorhandler(TreeCycleError)
    def tree_cycle(exc):
        logger.error("Stored folder tree is inconsistent: %s", exc)
        return message(str(exc), 409)

    @bp.errorhandler(DriveError)
    def drive_failed(exc):
        return message(str(exc), 502)
