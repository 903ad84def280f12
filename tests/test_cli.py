"""
Tests for the command line interface.
"""

import json

import pytest

from thermalbridge.main import main
from thermalbridge.model.geometry import Point, Region
from thermalbridge.model.io import save_drawing
from thermalbridge.model.materials import Material


@pytest.fixture
def drawing_path(tmp_path, junction_regions):
    path = tmp_path / "drawing.json"
    save_drawing(junction_regions, str(path))
    return str(path)


class TestValidateCommand:

    def test_valid_drawing(self, drawing_path, capsys):
        assert main(["validate", drawing_path]) == 0
        assert "Drawing is valid (2 regions" in capsys.readouterr().out

    def test_invalid_drawing(self, tmp_path, capsys):
        path = tmp_path / "bad.json"
        save_drawing([Region("bad", Point(0.0, 0.0), Point(10.0, 10.0), Material("X", 0.0, 10.0))], str(path))

        assert main(["validate", str(path)]) == 1
        assert "Invalid thermal conductivity value" in capsys.readouterr().out

    def test_log_level_option(self, drawing_path, capsys):
        assert main(["--log-level", "warning", "validate", drawing_path]) == 0
        assert "Drawing is valid" in capsys.readouterr().out

    def test_missing_file(self, tmp_path):
        assert main(["validate", str(tmp_path / "missing.json")]) == 2

    def test_malformed_file(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        assert main(["validate", str(path)]) == 2


class TestRunCommand:

    def test_run_writes_outputs(self, drawing_path, tmp_path, capsys):
        json_path = tmp_path / "result.json"
        vtu_path = tmp_path / "result.vtu"

        code = main([
            "run", drawing_path,
            "--mesh-size", "20",
            "--max-iterations", "300",
            "--json", str(json_path),
            "--vtu", str(vtu_path),
        ])

        assert code == 0
        assert "PSI:" in capsys.readouterr().out
        summary = json.loads(json_path.read_text(encoding="utf-8"))
        assert summary["maxTemperature"] == pytest.approx(20.0)
        assert summary["dewPoint"] == pytest.approx(9.254, abs=0.01)
        assert summary["iterations"] <= 300
        assert len(summary["isotherms"]) == 9
        assert vtu_path.exists()

    def test_settings_file_with_overrides(self, drawing_path, tmp_path):
        settings_path = tmp_path / "settings.json"
        settings_path.write_text(json.dumps({"mesh_size": 25.0, "interior_temperature": 22.0}), encoding="utf-8")
        json_path = tmp_path / "result.json"

        code = main([
            "run", drawing_path,
            "--settings", str(settings_path),
            "--interior-temp", "24",
            "--method", "direct",
            "--json", str(json_path),
        ])

        assert code == 0
        summary = json.loads(json_path.read_text(encoding="utf-8"))
        assert summary["maxTemperature"] == pytest.approx(24.0)
        assert summary["converged"] is True
        assert summary["iterations"] == 0

    def test_strict_fails_without_convergence(self, drawing_path):
        assert main(["run", drawing_path, "--mesh-size", "20", "--max-iterations", "1", "--strict"]) == 3

    def test_invalid_setting(self, drawing_path):
        assert main(["run", drawing_path, "--mesh-size", "-1"]) == 2

    def test_no_command(self, capsys):
        assert main([]) == 1
