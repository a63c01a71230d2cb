"""
Unit tests for the command-line interface.
Tests argument handling, authentication flow and exit codes.
"""

import json
from unittest.mock import AsyncMock, patch

import pytest

from workoutanalytics.cli import build_parser, main
from workoutanalytics.config import Settings
from workoutanalytics.exceptions import ConfigurationError, RecordingNotFoundError
from workoutanalytics.identity import IdentityResolver
from workoutanalytics.intervals import compare_intervals
from workoutanalytics.models import BestPowerReport, Lap, WindowResult, WorkoutDetail
from workoutanalytics.recording import Recording

SETTINGS = Settings(
    email="ada@example.com",
    password="secret",
    token_store="/tmp/garth-test",
    log_level="WARNING",
    duration_tolerance=5.0,
)

REPORT = BestPowerReport(
    workout_id=42,
    workout_title="Ride",
    workout_date="2025-10-21",
    total_records=600,
    results=(WindowResult(5, 400, 10), WindowResult(1200, None, None)),
)


@pytest.fixture
def cli_env():
    """Patch settings, Garmin client and authentication for CLI runs."""
    with patch("workoutanalytics.cli.load_settings", return_value=SETTINGS), patch(
        "workoutanalytics.cli.GarminConnect"
    ) as connect_cls, patch(
        "workoutanalytics.cli.authenticate_garmin", return_value=True
    ) as authenticate:
        yield connect_cls, authenticate


class TestParser:
    """Tests for build_parser."""

    def test_best_power_default_durations(self):
        args = build_parser().parse_args(["best-power", "42"])

        assert args.workout_id == 42
        assert args.durations == [5, 60, 300, 1200]

    def test_compare_options(self):
        args = build_parser().parse_args(
            ["--log-level", "debug", "compare", "1", "2", "--min-power", "250", "--align-by", "original"]
        )

        assert args.log_level == "DEBUG"
        assert args.workout_ids == [1, 2]
        assert args.min_power == 250.0
        assert args.align_by == "original"
        assert args.tolerance is None

    def test_power_peaks_default_limit(self):
        args = build_parser().parse_args(["power-peaks", "2025-09-01", "2025-10-31"])

        assert args.start_date == "2025-09-01"
        assert args.limit == 100

    def test_invalid_align_mode(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["compare", "1", "--align-by", "position"])


class TestMain:
    """Tests for main."""

    def test_best_power(self, cli_env, capsys):
        connect_cls, authenticate = cli_env
        with patch(
            "workoutanalytics.cli.build_best_power_report", new_callable=AsyncMock, return_value=REPORT
        ) as build:
            exit_code = main(["best-power", "42", "--durations", "1200", "5"])

        assert exit_code == 0
        build.assert_awaited_once_with(connect_cls.return_value, 42, [1200, 5])
        authenticate.assert_called_once_with(
            "ada@example.com",
            "secret",
            token_store="/tmp/garth-test",
            client=connect_cls.return_value.client,
        )
        data = json.loads(capsys.readouterr().out)
        assert data["results"][1]["error"] == "Duration exceeds recording length"

    def test_best_power_csv(self, cli_env, tmp_path):
        with patch(
            "workoutanalytics.cli.build_best_power_report", new_callable=AsyncMock, return_value=REPORT
        ):
            exit_code = main(["best-power", "42", "--csv-dir", str(tmp_path)])

        assert exit_code == 0
        assert (tmp_path / "best_power_42.csv").exists()

    def test_flags_override_settings(self, cli_env):
        _, authenticate = cli_env
        with patch(
            "workoutanalytics.cli.build_best_power_report", new_callable=AsyncMock, return_value=REPORT
        ):
            main(["--email", "cli@example.com", "--token-store", "/tmp/other", "best-power", "42"])

        args, kwargs = authenticate.call_args
        assert args == ("cli@example.com", "secret")
        assert kwargs["token_store"] == "/tmp/other"

    def test_compare_uses_configured_tolerance(self, cli_env, capsys):
        workout = WorkoutDetail(1, "Ride", "2025-10-21", (Lap(1, 1195, 260),))
        with patch(
            "workoutanalytics.cli.build_interval_comparison",
            new_callable=AsyncMock,
            return_value=compare_intervals([workout]),
        ) as build:
            exit_code = main(["compare", "1", "--target-duration", "1200"])

        assert exit_code == 0
        criteria = build.await_args.args[2]
        assert criteria.target_duration == 1200.0
        assert criteria.duration_tolerance == 5.0
        assert criteria.align_by == "filtered"
        assert json.loads(capsys.readouterr().out)["lapRows"][0]["lapNumber"] == 1

    def test_compare_tolerance_flag(self, cli_env):
        with patch(
            "workoutanalytics.cli.build_interval_comparison",
            new_callable=AsyncMock,
            return_value=compare_intervals([]),
        ) as build:
            main(["compare", "1", "2", "--tolerance", "0"])

        assert build.await_args.args[1] == [1, 2]
        assert build.await_args.args[2].duration_tolerance == 0.0

    def test_compare_warnings_on_stderr(self, cli_env, capsys):
        with patch(
            "workoutanalytics.cli.build_interval_comparison",
            new_callable=AsyncMock,
            return_value=compare_intervals([WorkoutDetail(9, "Yoga")]),
        ):
            main(["compare", "9"])

        captured = capsys.readouterr()
        assert "Workout 9 (Yoga) has no laps" in captured.err
        assert json.loads(captured.out)["warnings"] == ["Workout 9 (Yoga) has no laps"]

    def test_whoami(self, cli_env, capsys):
        async def fetch():
            return {"id": 7, "profileId": 8, "fullName": "Ada Lovelace"}

        with patch(
            "workoutanalytics.cli.create_identity_resolver", return_value=IdentityResolver(fetch)
        ):
            exit_code = main(["whoami"])

        assert exit_code == 0
        assert json.loads(capsys.readouterr().out)["athleteId"] == 7

    def test_workouts(self, cli_env, capsys):
        connect_cls, _ = cli_env
        with patch(
            "workoutanalytics.cli.get_workouts", new_callable=AsyncMock, return_value='[{"workoutId": 1}]'
        ) as tool:
            exit_code = main(["workouts", "2025-10-01", "2025-10-31", "--limit", "20"])

        assert exit_code == 0
        tool.assert_awaited_once_with(connect_cls.return_value, "2025-10-01", "2025-10-31", 20)
        assert json.loads(capsys.readouterr().out) == [{"workoutId": 1}]

    def test_reversed_date_range_rejected(self, cli_env, capsys):
        connect_cls, _ = cli_env

        exit_code = main(["power-peaks", "2025-10-31", "2025-10-01"])

        assert exit_code == 1
        assert "is after endDate" in capsys.readouterr().err
        connect_cls.return_value.search_workouts.assert_not_called()

    def test_peaks(self, cli_env):
        connect_cls, _ = cli_env
        with patch(
            "workoutanalytics.cli.get_workout_peaks", new_callable=AsyncMock, return_value="{}"
        ) as tool:
            assert main(["peaks", "42"]) == 0

        tool.assert_awaited_once_with(connect_cls.return_value, 42)

    def test_download(self, cli_env, tmp_path):
        connect_cls, _ = cli_env
        with patch(
            "workoutanalytics.cli.download_fit_file", new_callable=AsyncMock, return_value="{}"
        ) as tool:
            assert main(["download", "42", "--output-dir", str(tmp_path)]) == 0

        tool.assert_awaited_once_with(connect_cls.return_value, 42, str(tmp_path))

    def test_authentication_failure(self, cli_env, capsys):
        _, authenticate = cli_env
        authenticate.return_value = False

        exit_code = main(["whoami"])

        assert exit_code == 1
        assert "Could not authenticate" in capsys.readouterr().err

    def test_analytics_error_reported(self, cli_env, capsys):
        with patch(
            "workoutanalytics.cli.build_best_power_report",
            new_callable=AsyncMock,
            side_effect=RecordingNotFoundError("No activity file available for workout 42"),
        ):
            exit_code = main(["best-power", "42"])

        assert exit_code == 1
        assert "No activity file available for workout 42" in capsys.readouterr().err

    def test_parse_needs_no_login(self, cli_env, capsys):
        _, authenticate = cli_env
        recording = Recording(records=[{"power": 100}], file_id={"type": "activity"})

        with patch("workoutanalytics.tools.load_recording", return_value=recording):
            exit_code = main(["parse", "ride.fit"])

        assert exit_code == 0
        authenticate.assert_not_called()
        assert json.loads(capsys.readouterr().out)["recordCount"] == 1

    def test_configuration_error(self, capsys):
        with patch(
            "workoutanalytics.cli.load_settings",
            side_effect=ConfigurationError("Unknown log level: 'chatty'"),
        ):
            exit_code = main(["parse", "ride.fit"])

        assert exit_code == 1
        assert "Unknown log level" in capsys.readouterr().err
