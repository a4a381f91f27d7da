"""Tests for waymark.cli."""

from pathlib import Path

import pytest

from waymark.app import Waymark
from waymark.cli import main, resolve_app

from tests.resources import apps

RESOURCES_DIR = Path(__file__).resolve().parent.parent / "resources"


class TestResolveApp:
    def test_module_attribute(self) -> None:
        assert resolve_app("tests.resources.apps:app") is apps.app

    def test_attribute_not_an_app(self) -> None:
        with pytest.raises(TypeError):
            resolve_app("tests.resources.apps:NOT_AN_APP")

    def test_directory(self) -> None:
        app = resolve_app(str(RESOURCES_DIR))
        assert "post/new" in app.router.index()

    def test_package(self) -> None:
        app = resolve_app("tests.resources")
        assert "contacts/new" in app.router.index()


class TestRoutesCommand:
    def test_lists_routes(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["routes", "tests.resources.blog"]) == 0
        out = capsys.readouterr().out
        assert out.splitlines()[0].split() == ["PATTERN", "VERBS", "OPERATION"]
        assert "post/$id/edit" in out
        assert "DELETE,POST" in out
        assert "tests.resources.blog.Blog.edit_post" in out

    def test_missing_package(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["routes", "tests.no_such_package"]) == 1
        assert "Error" in capsys.readouterr().err

    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out


class TestRunCommand:
    @pytest.fixture
    def served(self, monkeypatch: pytest.MonkeyPatch) -> list[Waymark]:
        served: list[Waymark] = []
        monkeypatch.setattr(Waymark, "run", lambda self: served.append(self))
        # run_server replaces the shared app's config; restore it afterwards
        monkeypatch.setattr(apps.app, "config", apps.app.config)
        return served

    def test_flags_override_app_config(self, served: list[Waymark]) -> None:
        argv = [
            "run", "tests.resources.apps:app",
            "--host", "0.0.0.0", "--port", "9001", "--prefix", "/api",
        ]
        assert main(argv) == 0
        assert served == [apps.app]
        config = served[0].config
        assert (config.host, config.port, config.mount_prefix) == ("0.0.0.0", 9001, "/api")

    def test_flags_apply_to_discovered_app(self, served: list[Waymark]) -> None:
        assert main(["run", "tests.resources", "--port", "9002"]) == 0
        assert served[0].config.port == 9002

    def test_without_flags_keeps_config(self, served: list[Waymark]) -> None:
        before = apps.app.config
        assert main(["run", "tests.resources.apps:app"]) == 0
        assert served[0].config is before

    def test_reload_is_not_an_option(
        self, served: list[Waymark], capsys: pytest.CaptureFixture[str]
    ) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["run", "tests.resources", "--reload"])
        assert exc_info.value.code == 2
        assert "--reload" in capsys.readouterr().err
        assert served == []
