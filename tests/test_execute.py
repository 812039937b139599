"""
End-to-end runs of `execute` / `main` with the chain replaced by FakeLedger.
"""

import json
import os
from unittest.mock import Mock, patch

import pytest

from conftest import FakeLedger
from medbench.config import RunConfig
from medbench.errors import LedgerError
from medbench.runner import execute, main


def _config(data_dir, tmp_path, **overrides):
    values = dict(
        contract_name="LightweightMedicalContract",
        output_file=str(tmp_path / "performanceLightweight.json"),
        patients_file=os.path.join(data_dir, "patient.csv"),
        doctors_file=os.path.join(data_dir, "doctor.csv"),
        artifacts_file=str(tmp_path / "deployment_info.json"),
        row_limit=10,
    )
    values.update(overrides)
    return RunConfig(**values)


def _patched(ledger, address="0xabc"):
    return (
        patch("medbench.runner.connect_to_blockchain", return_value=Mock()),
        patch("medbench.runner.load_deployment", return_value=([], address)),
        patch("medbench.runner.LedgerClient.from_deployment", return_value=ledger),
    )


def test_execute_writes_report(data_dir, tmp_path, fake_ledger, fake_clock):
    config = _config(data_dir, tmp_path)
    connect, load, from_deployment = _patched(fake_ledger)
    with connect, load, from_deployment:
        execute(config, clock=fake_clock)

    with open(config.output_file) as f:
        data = json.load(f)
    # patient 2 has no age and is skipped
    assert [e["id"] for e in data["patient"]["addPatient"]] == ["1", "3"]
    assert [e["id"] for e in data["patient"]["deletePatient"]] == ["1", "3"]
    assert data["doctor"]["addDoctor"] == [{"id": "7", "gasUsed": "250000", "executionTimeMs": "250.00"}]


def test_execute_prefers_configured_address(data_dir, tmp_path, fake_ledger):
    config = _config(data_dir, tmp_path, contract_address="0xdef")
    connect, load, from_deployment = _patched(fake_ledger, address="0xabc")
    with connect, load, from_deployment as built:
        execute(config)
    assert built.call_args[0][2] == "0xdef"


def test_execute_revert_writes_nothing(data_dir, tmp_path):
    ledger = FakeLedger(revert_on={("addPatient", 3)})
    config = _config(data_dir, tmp_path)
    connect, load, from_deployment = _patched(ledger)
    with connect, load, from_deployment:
        with pytest.raises(LedgerError):
            execute(config)
    assert not os.path.exists(config.output_file)


def test_main_exits_non_zero_on_fatal_error(data_dir, tmp_path, clean_env, monkeypatch):
    ledger = FakeLedger(revert_on={("addDoctor", 7)})
    output_file = tmp_path / "performanceLightweight.json"
    monkeypatch.setenv("MEDBENCH_PATIENTS_FILE", os.path.join(data_dir, "patient.csv"))
    monkeypatch.setenv("MEDBENCH_DOCTORS_FILE", os.path.join(data_dir, "doctor.csv"))
    monkeypatch.setenv("MEDBENCH_OUTPUT_FILE", str(output_file))

    connect, load, from_deployment = _patched(ledger)
    with connect, load, from_deployment:
        with pytest.raises(SystemExit) as exc:
            main("lightweight")
    assert exc.value.code == 1
    assert not output_file.exists()
