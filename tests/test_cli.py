"""Tests for the command-line entry point."""

import os

import pytest

from webvault import cli
from webvault.services.editor_session import EditorSession


def run(argv):
    with pytest.raises(SystemExit) as exc_info:
        cli.main(argv)
    return exc_info.value.code


class TestRenderAndLinks:
    def test_render(self, tmp_path, capsys):
        note = tmp_path / "note.md"
        note.write_text("# Hi\n\n[[Other|there]]", encoding="utf-8")
        assert run(["render", str(note)]) == 0
        out = capsys.readouterr().out
        assert "<h1>Hi</h1>" in out
        assert 'data-target="Other">there</a>' in out

    def test_links(self, tmp_path, capsys):
        note = tmp_path / "note.md"
        note.write_text("[[A]] and [[B|b]]", encoding="utf-8")
        assert run(["links", str(note)]) == 0
        assert capsys.readouterr().out.splitlines() == ["A", "B"]

    def test_missing_file(self, tmp_path, capsys):
        assert run(["render", str(tmp_path / "nope.md")]) == 1
        assert "file not found" in capsys.readouterr().err

    def test_unknown_command(self):
        assert run(["frobnicate"]) == 2


class TestWatchLocalFile:
    def test_changes_feed_the_editor(self, tmp_path, scheduler, monkeypatch):
        path = tmp_path / "note.md"
        path.write_text("v1", encoding="utf-8")
        saved = []
        editor = EditorSession(1, "v0", persist=saved.append, scheduler=scheduler)

        writes = iter(["v2", "v2", "v3"])
        stamps = iter(range(1000, 2000, 10))

        def fake_sleep(seconds):
            content = next(writes, None)
            if content is not None and content != path.read_text(encoding="utf-8"):
                path.write_text(content, encoding="utf-8")
                # mtime resolution can be coarse
                stamp = next(stamps)
                os.utime(path, (stamp, stamp))

        monkeypatch.setattr(cli.time, "sleep", fake_sleep)
        cli.watch_local_file(editor, path, interval=0, polls=4)

        assert editor.content == "v3"
        scheduler.advance(1.0)
        assert saved == ["v3"]

    def test_missing_file_is_ignored(self, tmp_path, scheduler, monkeypatch):
        editor = EditorSession(1, "v0", persist=lambda c: None, scheduler=scheduler)
        monkeypatch.setattr(cli.time, "sleep", lambda s: None)
        cli.watch_local_file(editor, tmp_path / "absent.md", interval=0, polls=2)
        assert editor.content == "v0"
        assert not editor.has_unsaved_changes


class TestParser:
    def test_watch_file_defaults(self):
        args = cli.build_parser().parse_args(["watch-file", "3", "note.md"])
        assert args.file_id == 3
        assert args.server == "http://localhost:5000"
        assert args.delay == 1.0


class TestWatchFileCommand:
    def test_ctrl_c_saves_last_edit(self, tmp_path, monkeypatch, capsys):
        updates = []

        class FakeClient:
            def __init__(self, base_url):
                pass

            def get_file(self, file_id):
                return {"id": file_id, "content": "v0"}

            def update_file(self, file_id, **changes):
                updates.append((file_id, changes["content"]))

        def interrupted_watch(editor, path, interval):
            editor.edit("typed")
            raise KeyboardInterrupt

        waits = []
        original_close = EditorSession.close

        def close(self, wait=None):
            waits.append(wait)
            return original_close(self, wait=wait)

        monkeypatch.setattr(cli, "VaultApiClient", FakeClient)
        monkeypatch.setattr(cli, "watch_local_file", interrupted_watch)
        monkeypatch.setattr(EditorSession, "close", close)

        assert run(["watch-file", "4", str(tmp_path / "note.md")]) == 0
        assert updates == [(4, "typed")]
        assert waits == [cli.CLOSE_TIMEOUT]
        assert "Stopped." in capsys.readouterr().out
