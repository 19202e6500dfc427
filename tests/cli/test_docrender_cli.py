from pathlib import Path

import pytest
from click.testing import CliRunner

from docrender.cli import _default_output, _is_url, cli

ENGINE = "docrender.engine.testing:create_recording_engine"


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def page(tmp_path, monkeypatch) -> Path:
    monkeypatch.chdir(tmp_path)
    (tmp_path / "style.css").write_text("p { color: navy; }")
    path = tmp_path / "page.html"
    path.write_text('<link rel="stylesheet" href="style.css"><p>from the cli</p>', encoding="utf-8")
    return path


def test_is_url():
    assert _is_url("https://example.com/page.html")
    assert _is_url("file:///tmp/page.html")
    assert not _is_url("page.html")
    assert not _is_url("C:\\docs\\page.html")
    assert not _is_url("data:text/html,<p>x</p>")


def test_default_output():
    assert _default_output("https://example.com/", True, "png") == "output.png"
    assert _default_output("docs/report.html", False, "pdf") == "report.pdf"


def test_render_svg(runner, page):
    result = runner.invoke(cli, ["render", "page.html", "--engine", ENGINE, "-f", "svg", "-o", "out.svg"])

    assert result.exit_code == 0, result.output
    assert "Successfully rendered" in result.output
    svg = Path("out.svg").read_text(encoding="utf-8")
    assert svg.startswith("<svg")
    assert "from the cli" in svg
    assert "style.css" not in svg


def test_default_output_is_png(runner, page):
    result = runner.invoke(cli, ["render", "page.html", "--engine", ENGINE])

    assert result.exit_code == 0, result.output
    assert Path("page.png").read_bytes().startswith(b"\x89PNG")


def test_format_from_output_extension(runner, page):
    result = runner.invoke(cli, ["render", "page.html", "--engine", ENGINE, "-o", "report.pdf"])

    assert result.exit_code == 0, result.output
    assert Path("report.pdf").read_bytes().startswith(b"%PDF")


def test_engine_from_environment(runner, page, monkeypatch):
    monkeypatch.setenv("DOCRENDER_ENGINE", ENGINE)

    result = runner.invoke(cli, ["render", "page.html", "-o", "out.webp"])

    assert result.exit_code == 0, result.output
    assert Path("out.webp").read_bytes().startswith(b"RIFF")


def test_verbose_prints_engine_logs(runner, page):
    result = runner.invoke(cli, ["render", "page.html", "--engine", ENGINE, "-o", "out.svg", "-v"])

    assert result.exit_code == 0, result.output
    assert "[Engine] INFO: rendering 1 document(s)" in result.output


def test_missing_engine(runner, page):
    result = runner.invoke(cli, ["render", "page.html"])

    assert result.exit_code == 1
    assert "no engine configured" in result.output


def test_missing_file(runner, page):
    result = runner.invoke(cli, ["render", "missing.html", "--engine", ENGINE])

    assert result.exit_code == 1
    assert "File not found" in result.output


def test_bad_engine_path(runner, page):
    result = runner.invoke(cli, ["render", "page.html", "--engine", "docrender.engine.testing"])

    assert result.exit_code == 1
    assert "Error during rendering" in result.output


def test_settings_show(runner, monkeypatch):
    monkeypatch.setenv("DOCRENDER_MAX_WORKERS", "6")

    result = runner.invoke(cli, ["settings", "show"])

    assert result.exit_code == 0, result.output
    assert "Settings" in result.output
    assert "DOCRENDER_MAX_WORKERS" in result.output


def test_unwritable_output(runner, page):
    result = runner.invoke(cli, ["render", "page.html", "--engine", ENGINE, "-o", "no_such_dir/out.svg"])

    assert result.exit_code == 1
    assert "Error during rendering" in result.output
    assert not Path("no_such_dir").exists()
