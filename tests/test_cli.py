"""Tests for the command line entry point and settings validation."""

import logging

import pytest

import obsidian_preview
from obsidian_preview import PreviewApp, build_parser, config_from_args, main
from preview_config import PreviewConfig


class TestMain:
    def test_help_exits_cleanly_without_building(self, vault, monkeypatch) -> None:
        monkeypatch.chdir(vault)
        with pytest.raises(SystemExit) as excinfo:
            main(["--help"])
        assert excinfo.value.code == 0
        assert not (vault / "index.html").exists()

    def test_one_shot_build(self, vault, capsys) -> None:
        assert main(["--root", str(vault), "--no-serve", "--no-watch"]) == 0
        page = (vault / "index.html").read_text(encoding="utf-8")
        assert "notes/sub/page.md" in page
        assert "Found 6 markdown files" in capsys.readouterr().out

    def test_custom_output_and_title(self, vault) -> None:
        args = ["--root", str(vault), "--no-serve", "--no-watch", "--output", "preview.html", "--title", "My Notes"]
        assert main(args) == 0
        assert "<title>My Notes</title>" in (vault / "preview.html").read_text(encoding="utf-8")
        assert not (vault / "index.html").exists()

    def test_render_failures_are_reported(self, vault, capsys) -> None:
        (vault / "Zeta.md").write_bytes(b"\xff broken")
        assert main(["--root", str(vault), "--no-serve", "--no-watch"]) == 0
        out = capsys.readouterr().out
        assert "Found 6 markdown files" in out
        assert "1 of them could not be rendered: Zeta.md" in out

    def test_clean_build_reports_no_failures(self, vault, capsys) -> None:
        main(["--root", str(vault), "--no-serve", "--no-watch"])
        assert "could not be rendered" not in capsys.readouterr().out

    def test_missing_root_fails(self, tmp_path, capsys) -> None:
        assert main(["--root", str(tmp_path / "missing"), "--no-serve", "--no-watch"]) == 1
        assert "Error scanning directory" in capsys.readouterr().err

    @pytest.mark.parametrize("flags", [["--debounce", "0"], ["--port", "70000"], ["--output", "a/b.html"]])
    def test_invalid_settings_are_usage_errors(self, vault, flags) -> None:
        with pytest.raises(SystemExit) as excinfo:
            main(["--root", str(vault), "--no-serve", "--no-watch", *flags])
        assert excinfo.value.code == 2

    def test_serve_is_called_with_settings(self, vault, monkeypatch) -> None:
        seen = {}

        def fake_serve(root, host, port, open_browser, page):
            seen.update(root=root, host=host, port=port, open_browser=open_browser, page=page)

        monkeypatch.setattr(obsidian_preview, "serve_site", fake_serve)
        assert main(["--root", str(vault), "--no-watch", "--port", "8123"]) == 0
        assert seen == {"root": vault, "host": "", "port": 8123, "open_browser": False, "page": "index.html"}


class TestArgs:
    def test_defaults(self) -> None:
        config = config_from_args(build_parser().parse_args([]))
        assert config.port == 9099
        assert config.output_name == "index.html"
        assert config.debounce_seconds == 0.5
        assert config.watch and config.serve and not config.open_browser


class TestPreviewApp:
    def test_rebuild_writes_artifact(self, vault, config, capsys) -> None:
        PreviewApp(config).rebuild()
        assert (vault / "index.html").exists()
        assert "Updated, found 6 markdown files" in capsys.readouterr().out

    def test_rebuild_on_vanished_root_keeps_running(self, tmp_path, caplog) -> None:
        app = PreviewApp(PreviewConfig(root=tmp_path / "gone"))
        with caplog.at_level(logging.ERROR):
            app.rebuild()
        assert "rescan failed" in caplog.text

    def test_rebuild_keeps_previous_state_on_scan_failure(self, vault, config) -> None:
        app = PreviewApp(config)
        first = app.build_and_emit()
        app.config.root = vault / "gone"
        app.rebuild()
        assert app.store.snapshot() is first


class TestPreviewConfig:
    def test_valid_defaults(self, tmp_path) -> None:
        PreviewConfig(root=tmp_path).validate()

    @pytest.mark.parametrize(
        "overrides",
        [
            {"debounce_seconds": 0},
            {"debounce_seconds": -1.0},
            {"port": 0},
            {"output_name": ""},
            {"output_name": "../index.html"},
            {"progress_every": 0},
        ],
    )
    def test_rejected(self, tmp_path, overrides) -> None:
        with pytest.raises(ValueError):
            PreviewConfig(root=tmp_path, **overrides).validate()

    def test_hidden_and_reserved_names(self) -> None:
        config = PreviewConfig()
        assert config.is_excluded(".obsidian", True)
        assert config.is_excluded(".draft.md", False)
        assert config.is_excluded("node_modules", True)
        assert not config.is_excluded("node_modules", False)
        assert not config.is_excluded(".", True)
        assert not config.is_excluded("notes", True)
