"""Tests for demo_cli.py - exit codes of the standalone demo."""

import pytest

import demo_cli
from utils.errors import AcquisitionFailure


class _DeadCamera:
    def __enter__(self):
        raise AcquisitionFailure("Could not open camera at index 0.")

    def __exit__(self, *exc):
        return False


class TestDemoCLI:
    def test_synthetic_finger_run_succeeds(self, capsys):
        assert demo_cli.main(["--seed", "7"]) == demo_cli.EXIT_OK
        assert "RESULTS" in capsys.readouterr().out

    def test_synthetic_sound_run_succeeds(self):
        assert demo_cli.main(["--mode", "sound"]) == demo_cli.EXIT_OK

    def test_camera_failure_exit_code(self, monkeypatch, capsys):
        monkeypatch.setattr(demo_cli, "CameraCapture", _DeadCamera)
        assert demo_cli.main(["--source", "camera"]) == demo_cli.EXIT_ACQUISITION
        assert "Could not open camera" in capsys.readouterr().out

    @pytest.mark.parametrize(
        "argv",
        [["--duration", "2"], ["--jitter", "1.5"], ["--source", "camera", "--mode", "sound"]],
    )
    def test_bad_arguments_exit(self, argv):
        with pytest.raises(SystemExit) as exc:
            demo_cli.main(argv)
        assert exc.value.code == 2
