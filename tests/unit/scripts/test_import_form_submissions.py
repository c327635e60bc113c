"""Tests for the submission import script."""

from __future__ import annotations

import importlib.util
import subprocess
import sys
from pathlib import Path
from unittest.mock import AsyncMock, Mock, patch

import pytest

from fieldvisit.importer import ImportOrchestrator, ImportResult
from fieldvisit.importer.data import BatchApiSettings

SCRIPT_PATH = Path(__file__).parents[3] / "scripts" / "import" / "import_form_submissions.py"

CSV_TEXT = "Terminal ID,Submitted On,Visit,Emp. code,approved\nT001,01/03/2024,3,SUP9,yes\n"


def load_script():
    """Load the script as a module (its directory is not a package)."""
    module_spec = importlib.util.spec_from_file_location("import_form_submissions", SCRIPT_PATH)
    module = importlib.util.module_from_spec(module_spec)
    module_spec.loader.exec_module(module)
    return module


def test_preview_prints_mapped_rows(tmp_path):
    csv_path = tmp_path / "visits.csv"
    csv_path.write_text(CSV_TEXT, encoding="utf-8")

    result = subprocess.run(
        [sys.executable, str(SCRIPT_PATH), str(csv_path), "--org-id", "org1", "--preview"],
        capture_output=True,
        text=True,
    )

    assert result.returncode == 0
    assert '"agent_code": "T001"' in result.stdout
    assert '"cycle_number": 3' in result.stdout


def test_missing_file_exits_nonzero(tmp_path):
    script = load_script()

    assert script.main([str(tmp_path / "absent.csv"), "--org-id", "org1"]) == 1


def test_default_errors_path():
    script = load_script()

    assert script.default_errors_path(Path("/data/visits.csv")) == Path("/data/visits.errors.csv")


def test_org_id_is_required():
    script = load_script()

    with pytest.raises(SystemExit):
        script.build_parser().parse_args(["visits.csv"])


NO_CREDENTIALS = {"POCKETBASE_ADMIN_EMAIL": "", "POCKETBASE_ADMIN_PASSWORD": ""}
CREDENTIALS = {"POCKETBASE_ADMIN_EMAIL": "ops@example.com", "POCKETBASE_ADMIN_PASSWORD": "s3cret-pass"}


def test_preview_honours_configured_row_count(tmp_path, capsys):
    script = load_script()
    csv_path = tmp_path / "visits.csv"
    csv_path.write_text(CSV_TEXT + "T002,02/03/2024,1,SUP9,yes\nT003,03/03/2024,1,SUP9,yes\n", encoding="utf-8")

    with patch.dict("os.environ", {**NO_CREDENTIALS, "CONFIG_IMPORT_PREVIEW_ROWS": "2"}):
        exit_code = script.main([str(csv_path), "--org-id", "org1", "--preview"])

    assert exit_code == 0
    assert capsys.readouterr().out.count('"agent_code"') == 2


def test_import_without_credentials_fails(tmp_path):
    script = load_script()
    csv_path = tmp_path / "visits.csv"
    csv_path.write_text(CSV_TEXT, encoding="utf-8")

    with (
        patch.dict("os.environ", NO_CREDENTIALS),
        patch.object(script.ImportOrchestrator, "from_pocketbase") as mock_from_pocketbase,
    ):
        assert script.main([str(csv_path), "--org-id", "org1"]) == 1

    mock_from_pocketbase.assert_not_called()


def test_disabled_batch_api_stops_import(tmp_path):
    script = load_script()
    csv_path = tmp_path / "visits.csv"
    csv_path.write_text(CSV_TEXT, encoding="utf-8")

    with (
        patch.dict("os.environ", CREDENTIALS),
        patch.object(script, "connect", return_value=Mock()),
        patch.object(script, "read_batch_settings", return_value=BatchApiSettings(enabled=False, max_requests=50)),
        patch.object(script.ImportOptions, "from_config", return_value=script.ImportOptions()),
        patch.object(script.ImportOrchestrator, "from_pocketbase") as mock_from_pocketbase,
    ):
        assert script.main([str(csv_path), "--org-id", "org1"]) == 1

    mock_from_pocketbase.assert_not_called()


def test_errors_written_next_to_input(tmp_path):
    script = load_script()
    csv_path = tmp_path / "visits.csv"
    csv_path.write_text(CSV_TEXT, encoding="utf-8")

    result = ImportResult(total_rows=1, error_count=0)
    result.add_error(2, "Agent not found for code: T001", {"agentCode": "T001"})
    orchestrator = Mock(spec=ImportOrchestrator)
    orchestrator.run = AsyncMock(return_value=result)

    with (
        patch.object(script, "connect", return_value=Mock()),
        patch.object(script, "read_batch_settings", return_value=None),
        patch.object(script.ImportOptions, "from_config", return_value=script.ImportOptions()),
        patch.object(script.ImportOrchestrator, "from_pocketbase", return_value=orchestrator),
    ):
        exit_code = script.main([str(csv_path), "--org-id", "org1"])

    assert exit_code == 0
    errors_csv = (tmp_path / "visits.errors.csv").read_text(encoding="utf-8")
    assert errors_csv.startswith('"Row","Error","Data"\n2,"Agent not found for code: T001",')
