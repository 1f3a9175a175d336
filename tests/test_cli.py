"""
End-to-end tests for the ``cartonfit-run`` command.

Run with:
    python -m pytest tests/test_cli.py -v
"""

import sys
import os
import csv
import json
import time
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import cartonfit.session as session_module
from cartonfit.runner.cli import EXIT_BAD_INPUT, EXIT_NO_FIT, EXIT_OK, EXIT_TIMEOUT, main


def write_request(tmp_path, boxes, products):
    path = tmp_path / "request.json"
    path.write_text(json.dumps({"boxes": boxes, "products": products}))
    return str(path)


CUBE = {"width": 10, "depth": 10, "height": 10}
CATALOG = [
    {"id": "b1000", "width": 10, "depth": 10, "height": 10},
    {"id": "b2000", "width": 20, "depth": 10, "height": 10},
    {"id": "b5000", "width": 50, "depth": 10, "height": 10},
]


class TestCli:
    def test_success_writes_outputs(self, tmp_path, capsys):
        request = write_request(tmp_path, CATALOG, [dict(CUBE, id="a"), dict(CUBE, id="b")])
        out = tmp_path / "result.json"
        table = tmp_path / "steps.csv"

        code = main([request, "--output", str(out), "--csv", str(table)])

        assert code == EXIT_OK
        printed = capsys.readouterr().out
        assert "Box: b2000" in printed
        data = json.loads(out.read_text())
        assert data["box"]["id"] == "b2000"
        assert len(data["placements"]) == 2
        assert data["fill_rate"] == pytest.approx(1.0)
        with table.open() as f:
            assert len(list(csv.DictReader(f))) == 2

    def test_no_fit_exit_code(self, tmp_path):
        request = write_request(tmp_path, CATALOG[:1], [{"id": "big", "width": 30, "depth": 30, "height": 30}])
        assert main([request]) == EXIT_NO_FIT

    def test_invalid_request_exit_code(self, tmp_path, capsys):
        request = write_request(tmp_path, [], [dict(CUBE, id="a")])
        assert main([request]) == EXIT_BAD_INPUT
        assert "Invalid input" in capsys.readouterr().err

    def test_missing_file_exit_code(self, tmp_path):
        assert main([str(tmp_path / "missing.json")]) == EXIT_BAD_INPUT

    def test_empty_products_is_noop(self, tmp_path, capsys):
        request = write_request(tmp_path, CATALOG, [])
        assert main([request]) == EXIT_OK
        assert "nothing to pack" in capsys.readouterr().out

    def test_random_products(self, tmp_path, capsys):
        big = [{"id": "crate", "width": 100, "depth": 100, "height": 100}]
        request = write_request(tmp_path, big, [])
        assert main([request, "--random-products", "3", "--seed", "7"]) == EXIT_OK
        assert "for 3 products" in capsys.readouterr().out

    def test_timeout_exit_code(self, tmp_path, monkeypatch):
        def slow_engine(box_catalog, products, engine_config=None):
            time.sleep(0.5)
            return None

        monkeypatch.setattr(session_module, "choose_smallest_fitting_box", slow_engine)
        tuning = tmp_path / "tuning.yaml"
        tuning.write_text("timeout_seconds: 0.05\n")
        request = write_request(tmp_path, CATALOG, [dict(CUBE, id="a")])
        assert main([request, "--config", str(tuning)]) == EXIT_TIMEOUT

    def test_seed_reaches_every_search(self, tmp_path, monkeypatch):
        seen = []

        def recording_engine(box_catalog, products, engine_config=None):
            seen.append(engine_config)
            return None

        monkeypatch.setattr(session_module, "choose_smallest_fitting_box", recording_engine)
        request = write_request(tmp_path, CATALOG, [dict(CUBE, id="a")])
        assert main([request, "--seed", "7"]) == EXIT_NO_FIT
        cfg = seen[0]
        assert (cfg.beam.seed, cfg.flexible_plan.seed, cfg.selector.seed) == (7, 7, 7)

    def test_bad_tuning_exit_code(self, tmp_path):
        tuning = tmp_path / "tuning.yaml"
        tuning.write_text("beam:\n  nonsense: 1\n")
        request = write_request(tmp_path, CATALOG, [dict(CUBE, id="a")])
        assert main([request, "--config", str(tuning)]) == EXIT_BAD_INPUT
