import argparse
import json

import pytest

from warehouse_app.__main__ import build_parser, main, parse_item
from warehouse_app.data import clear_all_caches
from warehouse_app.data.composition_store import COMPOSITION_DIR_ENV
from warehouse_app.data.paths import DATA_DIR_ENV


def _json_from_stderr(err):
    # stderr may also carry the log line
    return json.loads(err[err.index("{"):])


@pytest.fixture(autouse=True)
def sample_data(monkeypatch):
    monkeypatch.delenv(DATA_DIR_ENV, raising=False)
    clear_all_caches()
    yield
    clear_all_caches()


def test_parse_item():
    assert parse_item("1:24") == {"product_id": 1, "quantity": "24"}
    assert parse_item("2:3:5") == {"product_id": 2, "quantity": "3", "packaging_type_id": 5}
    with pytest.raises(argparse.ArgumentTypeError):
        parse_item("1")
    with pytest.raises(argparse.ArgumentTypeError):
        parse_item("x:1")


def test_parser_requires_command_and_items():
    parser = build_parser()
    with pytest.raises(SystemExit):
        parser.parse_args([])
    with pytest.raises(SystemExit):
        parser.parse_args(["validate"])
    args = parser.parse_args(["validate", "--item", "1:10", "--item", "2:5", "--max-weight", "300"])
    assert [item["product_id"] for item in args.items] == [1, 2]
    assert args.max_weight == 300.0
    assert args.log_level == "WARNING"


def test_pick_command_prints_plan(capsys):
    assert main(["pick", "--product", "1", "--quantity", "250"]) == 0
    output = json.loads(capsys.readouterr().out)
    assert [(i["packaging_name"], i["quantity"]) for i in output["picking_plan"]] == [
        ("Case", 1),
        ("Shrink pack", 8),
        ("Bottle", 10),
    ]
    assert output["can_fulfill"] is True


def test_hierarchy_command(capsys):
    assert main(["hierarchy", "--product", "1"]) == 0
    output = json.loads(capsys.readouterr().out)
    root = output["hierarchy"][0]
    assert root["name"] == "Bottle"
    assert root["children"][0]["children"][0]["name"] == "Case"


def test_validate_command(capsys):
    assert main(["validate", "--item", "3:300", "--pallet", "1"]) == 0
    output = json.loads(capsys.readouterr().out)
    assert output["is_valid"] is False
    assert output["metrics"]["risk_level"] == "high"


def test_errors_are_reported_with_exit_code(capsys):
    assert main(["pick", "--product", "1", "--quantity", "NaN"]) == 1
    error = _json_from_stderr(capsys.readouterr().err)
    assert error["kind"] == "validation"
    assert main(["validate", "--item", "99:1"]) == 1
    assert _json_from_stderr(capsys.readouterr().err)["kind"] == "not_found"


def test_compose_command_persists_and_reports(tmp_path, monkeypatch, capsys):
    monkeypatch.setenv(COMPOSITION_DIR_ENV, str(tmp_path))
    assert main(["compose", "--item", "1:120", "--name", "Water", "--user", "7"]) == 0
    report = json.loads(capsys.readouterr().out)
    assert report["composition_id"] == 1
    assert report["status"] == "draft"
    assert (tmp_path / "1.json").exists()
