"""End-to-end tests for the claims-analytics command line."""

import json
import logging

import pytest
import structlog

from claims_analytics.cli import run
from claims_analytics.foundation.registration import PURCHASE_CHANNEL_FIELD, REASON_FIELD


@pytest.fixture(autouse=True)
def _restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


def _record(reg_id, purchased, created, reason="Broken", channel="Shop App", name="Dental Pod Arctic White"):
    return {
        "id": reg_id,
        "productName": name,
        "productSku": "DP-AW",
        "serialNumbers": [f"SN-{reg_id}"],
        "shopifyOrderCreatedAt": purchased,
        "createdAt": created,
        "fieldData": {REASON_FIELD: reason, PURCHASE_CHANNEL_FIELD: channel},
    }


@pytest.fixture
def registrations_file(tmp_path):
    records = [
        _record("m0-1", "2024-01-10T09:00:00Z", "2024-01-20T09:00:00Z"),
        _record("m0-2", "2024-01-10T09:00:00Z", "2024-01-20T09:00:00Z", reason="Lid"),
        _record("m1-1", "2024-01-10T09:00:00Z", "2024-02-15T09:00:00Z"),
        _record("m1-2", "2024-01-10T09:00:00Z", "2024-02-15T09:00:00Z"),
        _record("m1-3", "2024-01-10T09:00:00Z", "2024-02-15T09:00:00Z", channel="Amazon"),
        _record("late", "2022-01-10T09:00:00Z", "2024-02-15T09:00:00Z"),
    ]
    path = tmp_path / "registrations.json"
    path.write_text(json.dumps(records), encoding="utf-8")
    return path


@pytest.fixture
def volumes_file(tmp_path):
    path = tmp_path / "volumes.csv"
    path.write_text(
        "yearMonth,product,purchaseCount\n2024-01,Dental Pod,100\n", encoding="utf-8"
    )
    return path


class TestFilterValues:
    """Test the filter-values subcommand."""

    def test_combines_files(self, tmp_path, registrations_file, capsys):
        snapshot = tmp_path / "snapshot.json"
        snapshot.write_text(
            json.dumps(
                {
                    "warrantyRegistrations": [
                        _record("w", "2024-01-10T09:00:00Z", "2024-01-20T09:00:00Z", reason="Cracked")
                    ],
                    "returnRegistrations": [],
                }
            ),
            encoding="utf-8",
        )
        assert run(["filter-values", str(registrations_file), str(snapshot)]) == 0

        values = json.loads(capsys.readouterr().out)
        assert values["reasons"] == ["Broken", "Cracked", "Lid"]
        assert values["purchaseChannels"] == ["Amazon", "Shop App"]


class TestClaimsPercentage:
    """Test the claims-percentage subcommand."""

    def test_writes_output_file(self, tmp_path, registrations_file):
        output = tmp_path / "out" / "percentage.json"
        assert run(["claims-percentage", str(registrations_file), "--output", str(output)]) == 0

        payload = json.loads(output.read_text(encoding="utf-8"))
        assert [p["period"] for p in payload["data"]] == ["2024-01", "2024-02"]
        assert payload["data"][0]["claimCount"] == 2
        assert payload["quality"]["out_of_range"] == 1
        assert payload["quality"]["excluded_count"] == 1

    def test_facet_filters(self, registrations_file, capsys):
        assert run(["claims-percentage", str(registrations_file), "--reason", "Lid"]) == 0
        payload = json.loads(capsys.readouterr().out)
        assert [p["claimCount"] for p in payload["data"]] == [1]


class TestClaimsOverTime:
    """Test the claims-over-time subcommand."""

    def test_grouped_output(self, registrations_file, capsys):
        exit_code = run(
            [
                "claims-over-time",
                str(registrations_file),
                "--group-by",
                "reason",
                "--top-n",
                "1",
            ]
        )
        assert exit_code == 0

        payload = json.loads(capsys.readouterr().out)
        assert payload["categories"] == ["Broken", "Other"]
        assert payload["data"][0]["otherBreakdown"] == {"Lid": 1}

    def test_rejects_non_positive_top_n(self, registrations_file):
        assert run(["claims-over-time", str(registrations_file), "--top-n", "0"]) == 1


class TestCohortSurvival:
    """Test the cohort-survival subcommand."""

    def test_json_output(self, registrations_file, volumes_file, capsys):
        exit_code = run(
            [
                "cohort-survival",
                str(registrations_file),
                "--volumes",
                str(volumes_file),
                "--start-month",
                "2024-01",
                "--end-month",
                "2024-01",
                "--as-of",
                "2024-04-15",
            ]
        )
        assert exit_code == 0

        payload = json.loads(capsys.readouterr().out)
        assert payload["lastCompleteMonth"] == "2024-03"
        assert [p["claimCount"] for p in payload["data"]] == [2, 4, 4]
        assert [p["survivalRate"] for p in payload["data"]] == pytest.approx([98.0, 96.0, 96.0])
        assert payload["coverage"]["untracked_channel"] == 1
        assert payload["coverage"]["invalid_exposure"] == 1

    def test_default_range_is_last_six_complete_months(self, registrations_file, volumes_file, capsys):
        exit_code = run(
            [
                "cohort-survival",
                str(registrations_file),
                "--volumes",
                str(volumes_file),
                "--as-of",
                "2024-04-15",
            ]
        )
        assert exit_code == 0

        cohorts = [p["cohortMonth"] for p in json.loads(capsys.readouterr().out)["data"]]
        assert cohorts[0] == "2023-10"
        assert cohorts[-1] == "2024-03"

    def test_markdown_output(self, registrations_file, volumes_file, capsys):
        exit_code = run(
            [
                "cohort-survival",
                str(registrations_file),
                "--volumes",
                str(volumes_file),
                "--start-month",
                "2024-01",
                "--end-month",
                "2024-01",
                "--as-of",
                "2024-04-15",
                "--format",
                "markdown",
            ]
        )
        assert exit_code == 0

        out = capsys.readouterr().out
        assert "| Jan 2024 | 100 | 98.0% | 96.0% | 96.0% |" in out
        assert "| Data Quality | Count |" in out

    def test_reversed_range_fails(self, registrations_file, volumes_file):
        exit_code = run(
            [
                "cohort-survival",
                str(registrations_file),
                "--volumes",
                str(volumes_file),
                "--start-month",
                "2024-03",
                "--end-month",
                "2024-01",
            ]
        )
        assert exit_code == 1

    def test_malformed_month_is_usage_error(self, registrations_file, volumes_file):
        with pytest.raises(SystemExit) as excinfo:
            run(
                [
                    "cohort-survival",
                    str(registrations_file),
                    "--volumes",
                    str(volumes_file),
                    "--start-month",
                    "Jan 2024",
                ]
            )
        assert excinfo.value.code == 2

    def test_missing_input_fails(self, tmp_path, volumes_file):
        exit_code = run(
            [
                "cohort-survival",
                str(tmp_path / "absent.json"),
                "--volumes",
                str(volumes_file),
                "--start-month",
                "2024-01",
                "--end-month",
                "2024-01",
                "--as-of",
                "2024-04-15",
            ]
        )
        assert exit_code == 1


class TestLogLevel:
    """Test log level validation."""

    def test_unknown_level_is_usage_error(self, registrations_file):
        with pytest.raises(SystemExit) as excinfo:
            run(["filter-values", str(registrations_file), "--log-level", "LOUD"])
        assert excinfo.value.code == 2

    def test_level_is_case_insensitive(self, registrations_file, capsys):
        assert run(["filter-values", str(registrations_file), "--log-level", "info"]) == 0
        assert json.loads(capsys.readouterr().out)["reasons"] == ["Broken", "Lid"]
