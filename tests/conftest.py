import os

import pytest

from medbench.errors import LedgerError, PinningError
from medbench.ledger import Receipt


class FakeLedger:
    """
    Records every call and returns a receipt with a fixed gas value per
    method. `revert_on` is a set of (method, record id) pairs to revert.
    """

    def __init__(self, gas=None, revert_on=()):
        self.gas = gas or {}
        self.revert_on = set(revert_on)
        self.calls = []
        self._pending = {}

    def submit(self, method_name, args):
        handle = len(self.calls)
        self.calls.append((method_name, list(args)))
        self._pending[handle] = (method_name, args[0])
        return handle

    def wait(self, handle):
        method_name, record_id = self._pending.pop(handle)
        if (method_name, record_id) in self.revert_on:
            raise LedgerError(f"Transaction {handle} reverted.")
        return Receipt(gas_used=self.gas.get(method_name, 21000), status=1, tx_hash=str(handle))


class FakePinner:
    def __init__(self, fail=False, cid="QmFakeCid"):
        self.fail = fail
        self.cid = cid
        self.payloads = []

    def pin(self, payload, name="record.json"):
        self.payloads.append((name, payload))
        if self.fail:
            raise PinningError("Pinata upload failed: 503 Service Unavailable")
        return self.cid


class FakeClock:
    """Each call returns the next reading; every call is `step` seconds long."""

    def __init__(self, start=100.0, step=0.25):
        self.now = start
        self.step = step
        self.ticks = 0

    def __call__(self):
        value = self.now
        self.ticks += 1
        if self.ticks % 2 == 1:
            self.now += self.step
        return value


@pytest.fixture
def fake_ledger():
    return FakeLedger(gas={
        "addPatient": 120000,
        "deletePatient": 30000,
        "addDoctor": 250000,
        "deleteDoctor": 40000,
    })


@pytest.fixture
def fake_clock():
    return FakeClock()


def patient_row(patient_id="1", age="45", **overrides):
    row = {
        "patient_id": patient_id,
        "age": age,
        "highBP": "1",
        "highChol": "0",
        "cholCheck": "1",
        "bmi": "28.0",
        "smoker": "0",
        "stroke": "0",
    }
    row.update(overrides)
    return row


def doctor_row(doctor_id="7", doctor_name="Dr. Ada Okafor", **overrides):
    row = {
        "doctor_id": doctor_id,
        "doctor_name": doctor_name,
        "crdntls": "MD",
        "gender": "F",
        "hospital_name": "St. Mary",
        "country": "Nigeria",
        "specialty": "Cardiology",
    }
    row.update(overrides)
    return row


@pytest.fixture
def data_dir(tmp_path):
    """
    tmp `data/` folder with a patient.csv and doctor.csv.
    """
    directory = tmp_path / "data"
    directory.mkdir()
    (directory / "patient.csv").write_text(
        "patient_id,age,highBP,highChol,cholCheck,bmi,smoker,stroke\n"
        "1,45,1,0,1,28.0,0,0\n"
        "2,,1,1,1,31.0,1,0\n"
        "3,60,0,0,1,24.0,0,1\n"
    )
    (directory / "doctor.csv").write_text(
        "doctor_id,doctor_name,crdntls,gender,hospital_name,country,specialty\n"
        "7,Dr. Ada Okafor,MD,F,St. Mary,Nigeria,Cardiology\n"
    )
    return str(directory)


@pytest.fixture
def clean_env(monkeypatch):
    """Removes every variable the config loaders read."""
    for name in list(os.environ):
        if name.startswith("MEDBENCH_") or name.startswith("PINATA_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("medbench.config.load_dotenv", lambda *a, **k: False)
