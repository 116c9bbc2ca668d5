"""Flask routes for Google Drive: OAuth handshake, Drive passthrough, vault import/sync.

Tokens from the OAuth callback are kept in the signed Flask session, so each
browser session talks to Drive with its own credentials.
"""

import hmac
import logging
import secrets

from flask import Blueprint, jsonify, request, session

from webvault.deps import (
    DRIVE_TOKENS_KEY,
    get_drive_auth,
    get_drive_client,
    get_store,
    message,
    register_error_handlers,
)
from webvault.schemas import DriveContentUpdate, ImportRequest
from webvault.services.sync import VaultSync

logger = logging.getLogger(__name__)

drive_bp = Blueprint("drive", __name__)
register_error_handlers(drive_bp)

OAUTH_STATE_KEY = "oauth_state"


def _require_drive():
    drive = get_drive_client()
    if drive is None:
        return None, message("Not connected to Google Drive", 401)
    return drive, None


# ─── OAuth ──────────────────────────────────────────────────────────────

@drive_bp.route("/auth/google", methods=["GET"])
def auth_url():
    state = secrets.token_urlsafe(16)
    session[OAUTH_STATE_KEY] = state
    return jsonify({"auth_url": get_drive_auth().authorization_url(state=state)})


@drive_bp.route("/auth/google/callback", methods=["POST"])
def auth_callback():
    """Exchange the code the consent popup handed back.

    Expects JSON body: {"code": "...", "state": "..."}
    """
    data = request.get_json(silent=True) or {}
    code = data.get("code")
    if not code:
        return message("Missing authorization code", 400)
    expected = session.pop(OAUTH_STATE_KEY, None)
    provided = data.get("state") or ""
    if expected and not hmac.compare_digest(expected, provided):
        return message("OAuth state mismatch", 400)

    tokens = get_drive_auth().exchange_code(code)
    session[DRIVE_TOKENS_KEY] = tokens
    logger.info("Connected to Google Drive.")
    return jsonify({"success": True})


@drive_bp.route("/auth/google/status", methods=["GET"])
def auth_status():
    return jsonify({"connected": bool(session.get(DRIVE_TOKENS_KEY))})


@drive_bp.route("/auth/google/disconnect", methods=["POST"])
def auth_disconnect():
    session.pop(DRIVE_TOKENS_KEY, None)
    return jsonify({"success": True})


# ─── Drive passthrough ──────────────────────────────────────────────────

@drive_bp.route("/drive/folders", methods=["GET"])
def drive_folders():
    drive, error = _require_drive()
    if error:
        return error
    return jsonify(drive.list_folders())


@drive_bp.route("/drive/files/<folder_id>", methods=["GET"])
def drive_files(folder_id):
    drive, error = _require_drive()
    if error:
        return error
    return jsonify(drive.list_files(folder_id))


@drive_bp.route("/drive/file/<file_id>/content", methods=["GET"])
def drive_file_content(file_id):
    drive, error = _require_drive()
    if error:
        return error
    return jsonify({"content": drive.get_file_content(file_id)})


@drive_bp.route("/drive/file/<file_id>/content", methods=["PUT"])
def drive_update_content(file_id):
    drive, error = _require_drive()
    if error:
        return error
    data = DriveContentUpdate.model_validate(request.get_json(silent=True) or {})
    return jsonify(drive.update_file_content(file_id, data.content))


# ─── Vault import & sync ────────────────────────────────────────────────

@drive_bp.route("/vaults/import", methods=["POST"])
def import_vault():
    drive, error = _require_drive()
    if error:
        return error
    data = ImportRequest.model_validate(request.get_json(silent=True) or {})
    vault, report = VaultSync(get_store(), drive).import_folder(data.folder_id, data.name)
    return jsonify({"vault": vault.to_dict(), "report": report.to_dict()}), 201


@drive_bp.route("/vaults/<int:vault_id>/sync", methods=["POST"])
def sync_vault(vault_id):
    drive, error = _require_drive()
    if error:
        return error
    store = get_store()
    vault = store.get_vault(vault_id)
    if vault is None:
        return message("Vault not found", 404)
    report = VaultSync(store, drive).pull(vault)
    return jsonify({"vault": vault.to_dict(), "report": report.to_dict()})
