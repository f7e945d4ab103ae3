"""Tests for the ordered-tree CLI."""

import json
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from ordered_tree.cli import app, record_functions

runner = CliRunner()


@pytest.fixture(autouse=True)
def configure_mock() -> Iterator[MagicMock]:
    """Keep loguru writing to the real stderr instead of the runner's streams."""
    with patch("ordered_tree.cli.configure_logging") as configure:
        yield configure


RECORDS = [
    {"id": "parent", "name": "Parent", "order": 0.2},
    {"id": "son", "name": "Son", "order": 0.4},
    {"id": "daughter", "name": "Daughter", "order": 0.6},
]


def _write(tmp_path: Path, records: object) -> Path:
    path = tmp_path / "records.json"
    path.write_text(json.dumps(records))
    return path


def test_show_prints_outline(tmp_path: Path) -> None:
    result = runner.invoke(app, ["show", str(_write(tmp_path, RECORDS))])
    assert result.exit_code == 0, result.output
    assert result.output.splitlines() == ["- Parent;", "- Son;", "- Daughter;"]


def test_show_lists_missing_orders_and_orphans(tmp_path: Path) -> None:
    records = [
        {"id": "root", "name": "Root", "createdAt": "2022-01-01"},
        {"id": "kid", "name": "Kid", "parentId": "root", "createdAt": "2022-01-02"},
        {"id": "lost", "name": "Lost", "parentId": "nobody", "order": 0.5},
    ]
    result = runner.invoke(app, ["show", str(_write(tmp_path, records))])

    assert result.exit_code == 0, result.output
    assert "v Root;" in result.output
    assert "-- Kid;" in result.output
    assert "- Lost;" in result.output
    assert "Missing orders (2):" in result.output
    assert "  kid: 0.500000" in result.output
    assert "Orphans (1):" in result.output
    assert "  lost (missing parent nobody)" in result.output


def test_show_json_outputs_valid_json(tmp_path: Path) -> None:
    records = [
        {"id": "root", "name": "Root", "order": 0.5},
        {"id": "kid", "name": "Kid", "parentId": "root"},
    ]
    result = runner.invoke(app, ["show", str(_write(tmp_path, records)), "--json"])

    assert result.exit_code == 0, result.output
    parsed = json.loads(result.output)
    assert [row["id"] for row in parsed["rows"]] == ["root", "kid"]
    assert parsed["rows"][0]["expansion"] == "expanded"
    assert parsed["rows"][1]["depth"] == 1
    assert parsed["rows"][1]["parent_id"] == "root"
    assert parsed["missing_orders"] == {"kid": 0.5}
    assert parsed["orphans"] == []


def test_show_filter_keeps_matching_records_and_ancestors(tmp_path: Path) -> None:
    records = [
        {"id": "groceries", "name": "Groceries", "order": 0.2},
        {"id": "milk", "name": "Milk", "parentId": "groceries", "order": 0.5},
        {"id": "chores", "name": "Chores", "order": 0.6},
    ]
    result = runner.invoke(app, ["show", str(_write(tmp_path, records)), "-f", "milk"])

    assert result.exit_code == 0, result.output
    assert result.output.splitlines() == ["v Groceries;", "-- Milk;"]


def test_show_missing_file_fails(tmp_path: Path) -> None:
    result = runner.invoke(app, ["show", str(tmp_path / "nope.json")])
    assert result.exit_code == 1


def test_show_invalid_json_fails(tmp_path: Path) -> None:
    path = tmp_path / "records.json"
    path.write_text("[{")
    result = runner.invoke(app, ["show", str(path)])
    assert result.exit_code == 1


def test_show_records_without_ids_fail(tmp_path: Path) -> None:
    result = runner.invoke(app, ["show", str(_write(tmp_path, [{"name": "anonymous"}]))])
    assert result.exit_code == 1


def test_show_rootless_records_fail(tmp_path: Path) -> None:
    records = [{"id": "a", "parentId": "b"}, {"id": "b", "parentId": "a"}]
    result = runner.invoke(app, ["show", str(_write(tmp_path, records))])
    assert result.exit_code == 1


def test_drag_reports_the_move(tmp_path: Path) -> None:
    path = _write(tmp_path, RECORDS)
    result = runner.invoke(app, ["drag", str(path), "son", "--from", "10,30", "--to", "50,30"])

    assert result.exit_code == 0, result.output
    assert "-- Placeholder for Son;" in result.output
    assert "Moved son to order 0.5 under parent" in result.output


def test_drag_to_the_same_place_reports_no_move(tmp_path: Path) -> None:
    path = _write(tmp_path, RECORDS)
    result = runner.invoke(app, ["drag", str(path), "son", "--from", "10,30", "--to", "6,30"])

    assert result.exit_code == 0, result.output
    assert result.output.splitlines()[-1] == "No move"


def test_drag_unknown_record_fails(tmp_path: Path) -> None:
    path = _write(tmp_path, RECORDS)
    result = runner.invoke(app, ["drag", str(path), "nobody", "--from", "1,1", "--to", "1,50"])
    assert result.exit_code == 1


def test_drag_rejects_malformed_points(tmp_path: Path) -> None:
    path = _write(tmp_path, RECORDS)
    result = runner.invoke(app, ["drag", str(path), "son", "--from", "ten", "--to", "1,50"])
    assert result.exit_code != 0


def test_logging_flags_reach_the_configuration(
    tmp_path: Path, configure_mock: MagicMock
) -> None:
    result = runner.invoke(app, ["-q", "show", str(_write(tmp_path, RECORDS))])
    assert result.exit_code == 0, result.output
    configure_mock.assert_called_once_with(verbose=False, quiet=True)


def test_verbose_and_quiet_together_are_rejected(tmp_path: Path) -> None:
    result = runner.invoke(app, ["-v", "-q", "show", str(_write(tmp_path, RECORDS))])
    assert result.exit_code == 2


def test_record_functions_read_camel_and_snake_case() -> None:
    functions = record_functions()
    record = {"id": 7, "parent_id": "p", "order": 0.3, "collapsed": True}

    assert functions.get_id(record) == "7"
    assert functions.get_parent_id(record) == "p"
    assert functions.get_order(record) == 0.3
    assert functions.is_collapsed(record)
    assert functions.is_filtered_out is None


def test_record_functions_filter_by_name() -> None:
    functions = record_functions("MIL")
    assert functions.is_filtered_out is not None
    assert not functions.is_filtered_out({"id": "1", "name": "Oat milk"})
    assert functions.is_filtered_out({"id": "2", "name": "Bread"})
