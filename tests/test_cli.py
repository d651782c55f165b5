from __future__ import annotations

from pathlib import Path

import orjson

from fictionfix.cli import main


def write_document(path: Path, blocks) -> None:
    path.write_bytes(orjson.dumps({"pandoc-api-version": [1, 23, 1], "meta": {}, "blocks": blocks}))


def para(text: str) -> dict:
    return {"t": "Para", "c": [{"t": "Str", "c": text}]}


def test_cli_rewrites_file_and_reports_metrics(tmp_path: Path, capsys):
    source = tmp_path / "in.json"
    target = tmp_path / "out.json"
    write_document(
        source,
        [
            {"t": "Header", "c": [1, ["", [], []], [{"t": "Str", "c": "Chapter"}, {"t": "Space"}, {"t": "Str", "c": "1"}]]},
            para("Prose."),
            para("***"),
            para("More."),
        ],
    )

    assert main(["latex", "--input", str(source), "--output", str(target), "--metrics"]) == 0

    blocks = orjson.loads(target.read_bytes())["blocks"]
    assert blocks[0] == {"t": "RawBlock", "c": ["latex", "\\mainmatter"]}
    assert blocks[1]["t"] == "Header"
    assert {"t": "RawBlock", "c": ["latex", "\\scenebreak"]} in blocks

    metrics = orjson.loads(capsys.readouterr().err)
    assert metrics["scene_breaks"] == 1
    assert metrics["role"] == "part"
    assert metrics["input_blocks"] == 4


def test_cli_accepts_config_file(tmp_path: Path):
    source = tmp_path / "in.json"
    target = tmp_path / "out.json"
    config = tmp_path / "fix.yaml"
    config.write_text("features:\n  heading_role: chapter\n", encoding="utf-8")
    write_document(
        source,
        [{"t": "Header", "c": [1, ["", [], []], [{"t": "Str", "c": "Dawn"}]]}, para("Prose.")],
    )

    assert main(["--input", str(source), "--output", str(target), "--config", str(config)]) == 0

    header = orjson.loads(target.read_bytes())["blocks"][1]
    assert header["t"] == "Header"
    assert header["c"][0] == 2
