"""
Tests for the command line interface.
"""

import json
from datetime import date, timedelta

import pytest
from typer.testing import CliRunner

from doctorlink import __version__
from doctorlink.cli.app import app

runner = CliRunner()


def _next_monday_in_a_year() -> date:
    day = date.today() + timedelta(days=365)
    return day + timedelta(days=(7 - day.weekday()) % 7)


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        f"database_url: sqlite:///{tmp_path / 'cli.db'}\n"
        "log_level: WARNING\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def initialized(config_path):
    result = runner.invoke(app, ["init-db", "-c", str(config_path)])
    assert result.exit_code == 0, result.output
    return config_path


class TestInitDb:
    """Tests for the init-db command."""

    def test_creates_and_seeds(self, config_path):
        result = runner.invoke(app, ["init-db", "-c", str(config_path)])

        assert result.exit_code == 0
        assert "Database ready" in result.stdout
        assert "4 hospitals" in result.stdout

    def test_without_seed(self, config_path):
        result = runner.invoke(app, ["init-db", "--no-seed", "-c", str(config_path)])

        assert result.exit_code == 0
        assert "Seeded" not in result.stdout

    def test_missing_config_file(self, tmp_path):
        result = runner.invoke(app, ["init-db", "-c", str(tmp_path / "missing.yaml")])

        assert result.exit_code == 1
        assert "Config file not found" in result.stdout


class TestSlots:
    """Tests for the slots command."""

    def test_json_output_from_database(self, initialized):
        result = runner.invoke(app, ["slots", "1", "1", "--date", "2026-11-02", "--json", "-c", str(initialized)])

        assert result.exit_code == 0
        slots = json.loads(result.stdout)
        assert len(slots) == 13
        assert slots[0] == {"startTime": "09:00", "endTime": "09:30", "available": True}
        assert "09:30" not in [slot["startTime"] for slot in slots]

    def test_mock_data_with_duration(self, config_path):
        result = runner.invoke(
            app,
            ["slots", "3", "2", "--date", "2026-11-03", "--duration", "60", "--mock", "--json", "-c", str(config_path)],
        )

        assert result.exit_code == 0
        assert [slot["startTime"] for slot in json.loads(result.stdout)] == [
            "13:00", "14:00", "15:00", "16:00", "17:00", "18:00",
        ]

    def test_human_readable_output(self, config_path):
        result = runner.invoke(app, ["slots", "1", "1", "--date", "2026-11-02", "--mock", "-c", str(config_path)])

        assert result.exit_code == 0
        assert "13 free slot(s) on 2026-11-02" in result.stdout
        assert "09:00 – 09:30 (30 min)" in result.stdout

    def test_day_off(self, config_path):
        result = runner.invoke(app, ["slots", "1", "1", "--date", "2026-12-25", "--mock", "-c", str(config_path)])

        assert result.exit_code == 0
        assert "No free slots" in result.stdout

    def test_invalid_date(self, config_path):
        result = runner.invoke(app, ["slots", "1", "1", "--date", "02.11.2026", "--mock", "-c", str(config_path)])

        assert result.exit_code == 1
        assert "Invalid date" in result.stdout

    def test_invalid_duration(self, config_path):
        result = runner.invoke(
            app, ["slots", "1", "1", "--date", "2026-11-02", "--duration", "0", "--mock", "-c", str(config_path)]
        )

        assert result.exit_code == 1
        assert "greater than zero" in result.stdout


class TestHospitals:
    """Tests for the hospitals and doctors commands."""

    def test_lists_hospitals(self, initialized):
        result = runner.invoke(app, ["hospitals", "-c", str(initialized)])

        assert result.exit_code == 0
        assert "4 total" in result.stdout

    def test_nearby_search(self, initialized):
        result = runner.invoke(
            app,
            ["hospitals", "--lat", "36.64", "--lon", "127.48", "--sort", "distance", "-c", str(initialized)],
        )

        assert result.exit_code == 0
        assert "3 total" in result.stdout
        assert "km" in result.stdout

    def test_latitude_without_longitude(self, initialized):
        result = runner.invoke(app, ["hospitals", "--lat", "36.64", "-c", str(initialized)])

        assert result.exit_code == 1
        assert "must be given together" in result.stdout

    def test_no_results(self, initialized):
        result = runner.invoke(app, ["hospitals", "--city", "Busan", "-c", str(initialized)])

        assert result.exit_code == 0
        assert "No hospitals found" in result.stdout

    def test_doctors(self, initialized):
        result = runner.invoke(app, ["doctors", "1", "-s", "pediatrics", "-c", str(initialized)])

        assert result.exit_code == 0
        assert "Lee Seoyeon" in result.stdout
        assert "Kim Minjun" not in result.stdout

    def test_departments(self, initialized):
        result = runner.invoke(app, ["departments", "-c", str(initialized)])

        assert result.exit_code == 0
        assert "internal medicine" in result.stdout
        assert "family medicine" in result.stdout

    def test_doctors_of_unknown_hospital(self, initialized):
        result = runner.invoke(app, ["doctors", "99", "-c", str(initialized)])

        assert result.exit_code == 1
        assert "not found" in result.stdout


class TestBooking:
    """Tests for the book, appointments and cancel commands."""

    def test_book_and_rebook(self, initialized):
        day = _next_monday_in_a_year().isoformat()
        args = ["book", "300", "1", "1", "--date", day, "--time", "10:00", "-c", str(initialized)]

        first = runner.invoke(app, args)
        second = runner.invoke(app, args)

        assert first.exit_code == 0
        assert "Appointment booked" in first.stdout
        assert "10:00 - 10:30" in first.stdout
        assert second.exit_code == 1
        assert "no longer available" in second.stdout

    def test_book_off_grid(self, initialized):
        day = _next_monday_in_a_year().isoformat()
        result = runner.invoke(app, ["book", "300", "1", "1", "-d", day, "-t", "10:10", "-c", str(initialized)])

        assert result.exit_code == 1
        assert "not a valid slot" in result.stdout

    def test_book_in_the_past(self, initialized):
        result = runner.invoke(
            app, ["book", "300", "1", "1", "-d", "2000-01-03", "-t", "10:00", "-c", str(initialized)]
        )

        assert result.exit_code == 1
        assert "in the past" in result.stdout

    def test_appointments_and_cancel(self, initialized):
        listed = runner.invoke(app, ["appointments", "101", "--include-past", "-c", str(initialized)])
        cancelled = runner.invoke(app, ["cancel", "1", "--notes", "Feeling better", "-c", str(initialized)])
        again = runner.invoke(app, ["cancel", "1", "-c", str(initialized)])

        assert listed.exit_code == 0
        assert "2026-11-02" in listed.stdout
        assert "2026-11-03" in listed.stdout
        assert cancelled.exit_code == 0
        assert "Appointment 1 cancelled" in cancelled.stdout
        assert again.exit_code == 1
        assert "already cancelled" in again.stdout


def test_version():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_verbose_flag(config_path):
    result = runner.invoke(app, ["-v", "slots", "1", "1", "--date", "2026-11-02", "--mock", "-c", str(config_path)])

    assert result.exit_code == 0
