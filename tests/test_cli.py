from __future__ import annotations

import json
import sys

import yaml

from catalogtool import cli
from catalogtool.catalog import load_catalog
from catalogtool.cli import main

from conftest import BUNDLE_ID, BUNDLE_PATH, PREFAB_ID

ADDITIONS = """
[[bundles]]
internal_id = "{RuntimePath}/Switch/new_body.bundle"
internal_path = "fe_assets_unit/new_body.bundle"

[[prefabs]]
internal_id = "Assets/Unit/new_body.prefab"
internal_path = "Unit/new_body"
dependencies = ["{RuntimePath}/Switch/new_body.bundle", "%s"]
""" % BUNDLE_ID


def _write_additions(tmp_path):
    p = tmp_path / "additions.toml"
    p.write_text(ADDITIONS, encoding="utf-8")
    return p


def test_add_then_dependencies(tmp_path, catalog_file, capsys):
    out = tmp_path / "out.json"
    rc = main(["-r", "silent", str(catalog_file), "add", str(out), str(_write_additions(tmp_path))])
    assert rc == 0
    assert len(load_catalog(out).entry_table) == 4

    rc = main(["-r", "silent", str(out), "dependencies", "new_body.prefab"])
    assert rc == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines == [
        "Dependency found: {RuntimePath}/Switch/new_body.bundle",
        f"Dependency found: {BUNDLE_ID}",
    ]


def test_dependencies_transitive(tmp_path, catalog_file, capsys):
    rc = main(["-r", "silent", str(catalog_file), "dependencies", PREFAB_ID, "--transitive"])
    assert rc == 0
    assert capsys.readouterr().out.strip() == f"Dependency found: {BUNDLE_ID}"


def test_dependencies_of_bundle_fails(catalog_file, capsys):
    rc = main(["-r", "silent", str(catalog_file), "dependencies", BUNDLE_ID])
    assert rc == 1
    assert capsys.readouterr().out == ""


def test_unknown_internal_id_fails(catalog_file):
    assert main(["-r", "silent", str(catalog_file), "dependencies", "no-such-id"]) == 1


def test_dump_prefab_to_yaml(tmp_path, catalog_file):
    out = tmp_path / "dump.yaml"
    rc = main(["-r", "silent", str(catalog_file), "dump", PREFAB_ID, str(out)])
    assert rc == 0
    data = yaml.safe_load(out.read_text(encoding="utf-8"))
    assert data["bundles"] == [{"internal_id": BUNDLE_ID, "internal_path": BUNDLE_PATH}]
    assert data["prefabs"][0]["internal_id"] == PREFAB_ID
    assert data["prefabs"][0]["dependencies"] == [BUNDLE_ID]


def test_dump_output_feeds_add(tmp_path, catalog_file):
    dumped = tmp_path / "dump.toml"
    assert main(["-r", "silent", str(catalog_file), "dump", PREFAB_ID, str(dumped)]) == 0
    # re-adding an existing entry is refused
    out = tmp_path / "out.json"
    assert main(["-r", "silent", str(catalog_file), "add", str(out), str(dumped)]) == 1
    assert not out.exists()


def test_inspect_json(catalog_file, capsys):
    rc = main(["-r", "silent", str(catalog_file), "inspect", "--json"])
    assert rc == 0
    info = json.loads(capsys.readouterr().out)
    assert info["entries"] == 2
    assert info["internal_ids"] == 2


def test_json_reporter_emits_summary(tmp_path, catalog_file, capsys):
    out = tmp_path / "out.json"
    rc = main(["-r", "json", str(catalog_file), "add", str(out), str(_write_additions(tmp_path))])
    assert rc == 0
    events = [json.loads(line) for line in capsys.readouterr().err.splitlines() if line]
    assert any(e.get("summary_type") == "add" for e in events)
    assert any(e.get("event") == "task_end" and e["id"] == "save" for e in events)


def test_bundled_without_backend_fails(tmp_path, catalog_file):
    assert main(["-r", "silent", "-b", str(catalog_file), "inspect"]) == 1
    assert main(["-r", "silent", str(catalog_file), "extract", str(tmp_path / "x.json")]) == 1


def test_bundled_add_and_extract(tmp_path, catalog_file):
    out = tmp_path / "out.bundle"
    backend = ["--container-backend", "conftest:FakeBundle"]
    rc = main(
        ["-r", "silent", "-b", *backend, str(catalog_file), "add", str(out), str(_write_additions(tmp_path))]
    )
    assert rc == 0
    extracted = tmp_path / "extracted.json"
    assert main(["-r", "silent", *backend, str(out), "extract", str(extracted)]) == 0
    assert len(load_catalog(extracted).internal_ids) == 4


def test_bad_backend_name(catalog_file):
    rc = main(["-r", "silent", "--container-backend", "no_such_module:load", str(catalog_file), "inspect"])
    assert rc == 1


class _Stdin:
    def __init__(self, tty):
        self.tty = tty

    def isatty(self):
        return self.tty


def test_ambiguous_id_is_picked_interactively(catalog_file, capsys, monkeypatch):
    asked = {}

    def fake_ask(prompt, *, console, choices):
        asked["choices"] = choices
        return 1

    monkeypatch.setattr(sys, "stdin", _Stdin(True))
    monkeypatch.setattr(cli.IntPrompt, "ask", fake_ask)
    # "c069" matches both the bundle and the prefab
    rc = main(["-r", "silent", str(catalog_file), "dependencies", "c069"])
    assert rc == 0
    assert asked["choices"] == ["0", "1"]
    captured = capsys.readouterr()
    assert captured.out.strip() == f"Dependency found: {BUNDLE_ID}"
    assert "pick one" in captured.err


def test_ambiguous_id_without_terminal_fails(catalog_file, monkeypatch):
    def fail_ask(*args, **kwargs):
        raise AssertionError("prompted without a terminal")

    monkeypatch.setattr(sys, "stdin", _Stdin(False))
    monkeypatch.setattr(cli.IntPrompt, "ask", fail_ask)
    assert main(["-r", "silent", str(catalog_file), "dependencies", "c069"]) == 1
