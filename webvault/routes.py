"""Flask routes for vaults, files and the editor preview."""

import logging

from flask import Blueprint, current_app, jsonify, request

from webvault.deps import get_store, get_sync, message, register_error_handlers
from webvault.schemas import FileCreate, FileUpdate, PreviewRequest, VaultCreate, VaultUpdate
from webvault.services.autosave import DEFAULT_DELAY
from webvault.services.file_tree import build_file_tree, filter_files
from webvault.services.markdown_utils import note_stats
from webvault.services.wikilinks import (
    backlinks,
    extract_wikilinks,
    link_graph,
    render_markdown,
    resolve_wikilink,
)

logger = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__)
register_error_handlers(api_bp)


def _payload():
    return request.get_json(silent=True) or {}


def _resolved_links(content, files):
    links = []
    for target in extract_wikilinks(content):
        hit = resolve_wikilink(target, files) if files is not None else None
        links.append({"target": target, "file_id": hit.id if hit else None})
    return links


@api_bp.route("/config", methods=["GET"])
def editor_config():
    return jsonify({
        "autosave_delay": current_app.config.get("AUTOSAVE_DELAY", DEFAULT_DELAY),
    })


# ─── Vault API ───────────────────────────────────────────────────────────

@api_bp.route("/vaults", methods=["GET"])
def list_vaults():
    return jsonify([v.to_dict() for v in get_store().get_all_vaults()])


@api_bp.route("/vaults", methods=["POST"])
def create_vault():
    data = VaultCreate.model_validate(_payload())
    vault = get_store().create_vault(**data.model_dump())
    return jsonify(vault.to_dict()), 201


@api_bp.route("/vaults/<int:vault_id>", methods=["GET"])
def get_vault(vault_id):
    vault = get_store().get_vault(vault_id)
    if vault is None:
        return message("Vault not found", 404)
    return jsonify(vault.to_dict())


@api_bp.route("/vaults/<int:vault_id>", methods=["PUT"])
def update_vault(vault_id):
    data = VaultUpdate.model_validate(_payload())
    vault = get_store().update_vault(vault_id, **data.model_dump(exclude_unset=True))
    if vault is None:
        return message("Vault not found", 404)
    return jsonify(vault.to_dict())


@api_bp.route("/vaults/<int:vault_id>/files", methods=["GET"])
def list_vault_files(vault_id):
    files = get_store().get_files_by_vault(vault_id)
    return jsonify([f.to_dict() for f in files])


@api_bp.route("/vaults/<int:vault_id>/tree", methods=["GET"])
def vault_tree(vault_id):
    files = get_store().get_files_by_vault(vault_id)
    files = filter_files(files, request.args.get("q", "").strip())
    return jsonify([node.to_dict() for node in build_file_tree(files)])


@api_bp.route("/vaults/<int:vault_id>/graph", methods=["GET"])
def vault_graph(vault_id):
    files = get_store().get_files_by_vault(vault_id)
    nodes = [
        {"id": f.id, "name": f.stem, "path": f.path}
        for f in files if not f.is_folder
    ]
    return jsonify({"nodes": nodes, "edges": link_graph(files)})


@api_bp.route("/vaults/<int:vault_id>/resolve", methods=["GET"])
def resolve_link(vault_id):
    target = request.args.get("target", "")
    if not target.strip():
        return message("target is required", 400)
    hit = resolve_wikilink(target, get_store().get_files_by_vault(vault_id))
    if hit is None:
        return message(f"No note matches {target!r}", 404)
    return jsonify(hit.to_dict())


# ─── File API ────────────────────────────────────────────────────────────

@api_bp.route("/files/<int:file_id>", methods=["GET"])
def get_file(file_id):
    file = get_store().get_file(file_id)
    if file is None:
        return message("File not found", 404)
    return jsonify(file.to_dict())


@api_bp.route("/files", methods=["POST"])
def create_file():
    data = FileCreate.model_validate(_payload())
    file = get_store().create_file(**data.model_dump())
    sync = get_sync()
    if sync is not None:
        sync.push_file(file)
    return jsonify(file.to_dict()), 201


@api_bp.route("/files/<int:file_id>", methods=["PUT"])
def update_file(file_id):
    data = FileUpdate.model_validate(_payload())
    file = get_store().update_file(file_id, **data.model_dump(exclude_unset=True))
    if file is None:
        return message("File not found", 404)
    sync = get_sync()
    if sync is not None:
        sync.push_file(file)
    return jsonify(file.to_dict())


@api_bp.route("/files/<int:file_id>", methods=["DELETE"])
def delete_file(file_id):
    store = get_store()
    file = store.get_file(file_id)
    if file is None:
        return message("File not found", 404)
    drive_file_id = file.drive_file_id
    vault = store.get_vault(file.vault_id)
    store.delete_file(file_id)
    if drive_file_id and vault is not None and vault.is_connected:
        sync = get_sync()
        if sync is not None:
            sync.delete_remote(drive_file_id)
    return jsonify({"message": "File deleted successfully"})


@api_bp.route("/files/<int:file_id>/preview", methods=["GET"])
def preview_file(file_id):
    store = get_store()
    file = store.get_file(file_id)
    if file is None:
        return message("File not found", 404)
    content = file.content or ""
    return jsonify({
        "id": file.id,
        "html": render_markdown(content),
        "links": _resolved_links(content, store.get_files_by_vault(file.vault_id)),
        "stats": note_stats(content),
    })


@api_bp.route("/files/<int:file_id>/backlinks", methods=["GET"])
def file_backlinks(file_id):
    store = get_store()
    file = store.get_file(file_id)
    if file is None:
        return message("File not found", 404)
    sources = backlinks(file, store.get_files_by_vault(file.vault_id))
    return jsonify([f.to_dict(include_content=False) for f in sources])


@api_bp.route("/preview", methods=["POST"])
def preview_buffer():
    """Render an unsaved editor buffer."""
    data = PreviewRequest.model_validate(_payload())
    files = None
    if data.vault_id is not None:
        files = get_store().get_files_by_vault(data.vault_id)
    return jsonify({
        "html": render_markdown(data.content),
        "links": _resolved_links(data.content, files),
        "stats": note_stats(data.content),
    })
