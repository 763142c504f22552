"""Smoke tests: imports work, CLI --help works, a JSON graph lays out end to end."""

import json

from click.testing import CliRunner

from mermaid_layout.__main__ import main

GRAPH = {
    "direction": "LR",
    "nodes": [{"id": "A", "label": "Start"}, {"id": "B", "shape": "diamond"}],
    "edges": [{"source": "A", "target": "B", "label": "go"}],
    "subgraphs": [{"id": "S", "label": "Group", "nodeIds": ["B"]}],
}


def test_import():
    import mermaid_layout

    assert mermaid_layout is not None
    assert callable(mermaid_layout.layout)


def test_cli_help():
    runner = CliRunner()
    result = runner.invoke(main, ["--help"])
    assert result.exit_code == 0
    assert "Lay out a JSON logical graph" in result.output


def test_cli_layout_with_schedule(tmp_path):
    path = tmp_path / "graph.json"
    path.write_text(json.dumps(GRAPH))
    runner = CliRunner()
    result = runner.invoke(main, [str(path), "--animate"])
    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert [n["id"] for n in data["layout"]["nodes"]] == ["A", "B"]
    assert data["layout"]["groups"][0]["label"] == "Group"
    assert data["schedule"]["nodes"]["A"] == 0
    assert set(data["schedule"]["edges"]) == {"0"}


def test_cli_reads_stdin_and_writes_file(tmp_path):
    out = tmp_path / "layout.json"
    runner = CliRunner()
    result = runner.invoke(main, ["-", "-o", str(out), "--direction", "TB"], input=json.dumps(GRAPH))
    assert result.exit_code == 0, result.output
    data = json.loads(out.read_text())
    assert "schedule" not in data
    assert data["layout"]["kind"] == "flow"


def test_cli_undefined_node(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"nodes": [{"id": "A"}], "edges": [{"source": "A", "target": "Z"}]}))
    runner = CliRunner()
    result = runner.invoke(main, [str(path)])
    assert result.exit_code == 1
    assert "error:" in result.output
    assert "'Z'" in result.output


def test_cli_reports_malformed_records(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"kind": "sequence", "blocks": [{"kind": "loop"}]}))
    runner = CliRunner()
    result = runner.invoke(main, [str(path)])
    assert result.exit_code == 1
    assert "error: invalid graph (2 problem(s))" in result.output
    assert "blocks.0.start" in result.output
