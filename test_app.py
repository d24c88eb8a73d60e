"""
Tests for the drum synthesizer CLI and the strike image tools.
"""

import json
import math

import numpy as np
import pytest
import scipy.io.wavfile as wavfile
from app import DEFAULTS, build_parser, load_strike_png, main, merge_settings
from create_strike import STRIKE_TYPES, create_center_strike
from membrane import CartesianGeometry, PolarGeometry


SMALL_RECT = {"nx": 15, "ny": 15, "wave_speed": 1000.0, "duration": 0.01, "sample_rate": 8000}
SMALL_CIRCLE = {"shape": "circle", "nr": 9, "ntheta": 12, "duration": 0.01}


def write_config(tmp_path, config):
    path = tmp_path / "drum.json"
    path.write_text(json.dumps(config))
    return str(path)


class TestSettings:
    """Tests for config merging."""

    def test_defaults(self):
        args = build_parser().parse_args(["out.wav"])
        settings = merge_settings(args, {})
        assert settings == DEFAULTS

    def test_cli_overrides_config(self):
        args = build_parser().parse_args(["out.wav", "--duration", "0.5", "--shape", "circle"])
        settings = merge_settings(args, {"duration": 1.5, "damping": 3.0, "shape": "rect"})
        assert settings["duration"] == 0.5
        assert settings["shape"] == "circle"
        assert settings["damping"] == 3.0

    def test_output_sr_flag(self):
        args = build_parser().parse_args(["out.wav", "--output-sr", "22050"])
        assert merge_settings(args, {"output_sr": 8000})["output_sr"] == 22050

    def test_no_normalize_flag(self):
        args = build_parser().parse_args(["out.wav", "--no-normalize"])
        assert merge_settings(args, {})["normalize"] is False

    def test_unknown_config_key(self):
        args = build_parser().parse_args(["out.wav"])
        with pytest.raises(ValueError, match="Unknown config keys"):
            merge_settings(args, {"colour": "red"})


class TestMain:
    """End-to-end runs of the CLI on small grids."""

    def test_missing_output_prints_usage(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            main([])
        assert excinfo.value.code != 0
        assert "usage" in capsys.readouterr().err

    def test_rect_wav(self, tmp_path):
        output = tmp_path / "drum.wav"
        assert main([str(output), "--config", write_config(tmp_path, SMALL_RECT)]) == 0
        rate, data = wavfile.read(str(output))
        assert rate == 8000
        assert len(data) == 80
        assert np.max(np.abs(data.astype(np.int32))) == 32767

    def test_raw_output(self, tmp_path):
        output = tmp_path / "drum.bin"
        assert main([str(output), "--config", write_config(tmp_path, SMALL_RECT)]) == 0
        samples = np.fromfile(str(output), dtype='<f4')
        assert len(samples) == 80
        assert np.all(np.isfinite(samples))

    def test_circle_wav(self, tmp_path):
        output = tmp_path / "snare.wav"
        assert main([str(output), "--config", write_config(tmp_path, SMALL_CIRCLE)]) == 0
        rate, data = wavfile.read(str(output))
        assert rate == 44100
        assert len(data) == 441

    def test_stereo_pickups(self, tmp_path):
        config = dict(SMALL_RECT, pickups=[[5, 7], [9, 7]])
        output = tmp_path / "stereo.wav"
        assert main([str(output), "--config", write_config(tmp_path, config)]) == 0
        _, data = wavfile.read(str(output))
        assert data.shape == (80, 2)

    def test_creates_output_directory(self, tmp_path):
        output = tmp_path / "renders" / "drum.wav"
        assert main([str(output), "--config", write_config(tmp_path, SMALL_RECT)]) == 0
        assert output.exists()

    def test_cfl_violation_reports_error(self, tmp_path, capsys):
        config = dict(SMALL_RECT, wave_speed=4000.0)
        output = tmp_path / "drum.wav"
        assert main([str(output), "--config", write_config(tmp_path, config)]) == 1
        assert "CFL" in capsys.readouterr().out
        assert not output.exists()

    def test_bad_shape_reports_error(self, tmp_path, capsys):
        config = dict(SMALL_RECT, shape="hexagon")
        assert main([str(tmp_path / "x.wav"), "--config", write_config(tmp_path, config)]) == 1
        assert "Unknown shape" in capsys.readouterr().out

    def test_missing_config_file(self, tmp_path, capsys):
        assert main([str(tmp_path / "x.wav"), "--config", str(tmp_path / "nope.json")]) == 1
        assert "Error" in capsys.readouterr().out

    def test_output_sample_rate(self, tmp_path):
        config = dict(SMALL_RECT, output_sr=16000)
        output = tmp_path / "drum.wav"
        assert main([str(output), "--config", write_config(tmp_path, config)]) == 0
        rate, data = wavfile.read(str(output))
        assert rate == 16000
        assert len(data) == 160

    def test_output_sample_rate_flag_raw(self, tmp_path):
        output = tmp_path / "drum.bin"
        args = [str(output), "--config", write_config(tmp_path, SMALL_RECT), "--output-sr", "4000"]
        assert main(args) == 0
        assert len(np.fromfile(str(output), dtype='<f4')) == 40

    def test_non_integer_grid_reports_error(self, tmp_path, capsys):
        config = dict(SMALL_RECT, nx=15.0)
        assert main([str(tmp_path / "x.wav"), "--config", write_config(tmp_path, config)]) == 1
        assert "nx must be an integer" in capsys.readouterr().out

    def test_strike_png_and_plot(self, tmp_path):
        strike = tmp_path / "strike.png"
        create_center_strike(64).save(str(strike))
        output = tmp_path / "drum.wav"
        plot = tmp_path / "drum.png"
        args = [str(output), "--config", write_config(tmp_path, SMALL_RECT),
                "--strike", str(strike), "--plot", str(plot)]
        assert main(args) == 0
        assert output.exists()
        assert plot.stat().st_size > 0


class TestStrikeImages:
    """Tests for strike PNG generation and loading."""

    @pytest.mark.parametrize("name", sorted(STRIKE_TYPES))
    def test_strike_types(self, name):
        img = STRIKE_TYPES[name](48)
        assert img.mode == 'L'
        assert img.size == (48, 48)
        assert max(img.getdata()) > 0

    def test_load_onto_rectangle(self, tmp_path):
        path = tmp_path / "center.png"
        create_center_strike(64).save(str(path))
        field = load_strike_png(str(path), CartesianGeometry(33, 33), amplitude=0.5)
        assert field.shape == (33, 33)
        i, j = np.unravel_index(np.argmax(field), field.shape)
        assert abs(i - 16) <= 1 and abs(j - 16) <= 1
        assert field.max() <= 0.5
        assert field[0, 0] == pytest.approx(0.0, abs=1e-3)

    def test_load_onto_disc(self, tmp_path):
        path = tmp_path / "center.png"
        create_center_strike(64).save(str(path))
        geometry = PolarGeometry(9, 12, 0.0125, 2 * math.pi / 12)
        field = load_strike_png(str(path), geometry, amplitude=1.0)
        assert field.shape == (9, 12)
        assert field[0].min() == pytest.approx(field.max(), rel=0.05)
        assert field[-1].max() < 0.05
