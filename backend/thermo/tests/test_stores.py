import math
from datetime import datetime, timedelta

import pytest

from thermo.core.errors import ConflictError
from thermo.core.config import settings
from thermo.db.session import SessionLocal
from thermo.models.config import DeviceConfig
from thermo.models.operator import Operator
from thermo.services import config_store, operators, timeseries
from thermo.services.control import Decision


def test_clean_patch_validation():
    assert config_store.clean_patch({"setpoint": 5000}) == {"setpoint": 2000.0}
    assert config_store.clean_patch({"setpoint": -5000.5}) == {"setpoint": -1000.0}
    assert config_store.clean_patch({"hysteresis": -1}) == {}
    assert config_store.clean_patch({"hysteresis": 0}) == {}
    assert config_store.clean_patch({"hysteresis": 0.01}) == {"hysteresis": 0.1}
    assert config_store.clean_patch({"hysteresis": 900}) == {"hysteresis": 500.0}
    assert config_store.clean_patch({"hysteresis": "3"}) == {}
    assert config_store.clean_patch({"setpoint": True, "hysteresis": math.nan}) == {}
    assert config_store.clean_patch({"mode": "foo"}) == {}
    assert config_store.clean_patch({"mode": "manual", "colour": "red"}) == {"mode": "manual"}
    # too large for a float: dropped, the rest of the patch still applies
    assert config_store.clean_patch({"setpoint": 10**400, "mode": "manual"}) == {"mode": "manual"}
    assert config_store.clean_patch({"hysteresis": -(10**400), "setpoint": 70}) == {"setpoint": 70.0}


def test_get_or_create_uses_defaults_once(db):
    cfg = config_store.get_or_create(db, "dev-a")
    db.commit()
    assert (cfg.setpoint, cfg.hysteresis, cfg.mode) == (60.0, 2.0, "auto")
    again = config_store.get_or_create(db, "dev-a")
    db.commit()
    assert again.id == cfg.id
    assert db.query(DeviceConfig).filter(DeviceConfig.device_id == "dev-a").count() == 1


def test_get_or_create_returns_row_inserted_by_another_session(db, monkeypatch):
    other = SessionLocal()
    try:
        other.add(DeviceConfig(device_id="dev-race", setpoint=55.0))
        other.commit()
    finally:
        other.close()
    # this session missed the row on its first look and tries to insert
    monkeypatch.setattr(config_store, "get", lambda session, device_id: None)

    cfg = config_store.get_or_create(db, "dev-race")
    db.commit()
    assert cfg.setpoint == 55.0
    assert db.query(DeviceConfig).filter(DeviceConfig.device_id == "dev-race").count() == 1


def test_patch_merges_valid_fields_and_creates_missing_config(db):
    cfg = config_store.patch(db, "dev-b", {"setpoint": 5000, "hysteresis": -1, "mode": "foo"})
    db.commit()
    assert (cfg.setpoint, cfg.hysteresis, cfg.mode) == (2000.0, 2.0, "auto")
    cfg = config_store.patch(db, "dev-b", {"mode": "manual", "hysteresis": 4})
    db.commit()
    assert (cfg.setpoint, cfg.hysteresis, cfg.mode) == (2000.0, 4.0, "manual")


def test_latest_breaks_timestamp_ties_by_arrival(db):
    ts = datetime(2025, 1, 1, 12, 0, 0)
    timeseries.append(db, "dev-c", [60] * 4, 60.0, Decision.OFF, ts=ts)
    second = timeseries.append(db, "dev-c", [58] * 4, 58.0, Decision.ON, ts=ts)
    # older backfilled reading does not become "latest"
    timeseries.append(db, "dev-c", [70] * 4, 70.0, Decision.OFF, ts=ts - timedelta(hours=1))
    db.commit()
    last = timeseries.latest(db, "dev-c")
    assert last.id == second.id
    assert (last.relay1, last.relay2) == (True, True)
    assert timeseries.latest(db, "nobody") is None


def test_append_stores_undefined_values_as_null(db):
    r = timeseries.append(db, "dev-d", [math.nan, 61.0, math.inf, 59.0], math.nan, Decision.OFF)
    db.commit()
    db.refresh(r)
    assert (r.s1, r.s2, r.s3, r.s4, r.pv) == (None, 61.0, None, 59.0, None)
    assert r.seq == 1


def test_append_on_stale_version_conflicts(db):
    timeseries.append(db, "dev-e", [60] * 4, 60.0, Decision.OFF, expected_version=0)
    db.commit()
    with pytest.raises(ConflictError):
        timeseries.append(db, "dev-e", [60] * 4, 60.0, Decision.OFF, expected_version=0)
    db.rollback()
    assert timeseries.version(db, "dev-e") == 1


def test_range_query_is_ordered_bounded_and_limited(db):
    base = datetime(2025, 3, 1)
    for i in (5, 1, 3, 2, 4, 0):
        timeseries.append(db, "dev-f", [float(i)] * 4, float(i), Decision.OFF, ts=base + timedelta(minutes=i))
    timeseries.append(db, "other", [1.0] * 4, 1.0, Decision.OFF, ts=base)
    db.commit()

    rows = timeseries.range_query(db, "dev-f", limit=100)
    assert [r.pv for r in rows] == [0.0, 1.0, 2.0, 3.0, 4.0, 5.0]

    rows = timeseries.range_query(db, "dev-f", base + timedelta(minutes=1), base + timedelta(minutes=3), 100)
    assert [r.pv for r in rows] == [1.0, 2.0, 3.0]

    rows = timeseries.range_query(db, "dev-f", limit=4)
    assert len(rows) == 4
    assert all(a.ts <= b.ts for a, b in zip(rows, rows[1:]))


def test_export_rows_format(db):
    timeseries.append(db, "dev-g", [60.5, math.nan, 61.0, 59.5], 60.333, Decision.ON,
                      ts=datetime(2025, 1, 2, 3, 4, 5, 678000))
    db.commit()
    header, row = list(timeseries.export_rows(timeseries.range_query(db, "dev-g")))
    assert header == ["ts", "s1", "s2", "s3", "s4", "pv", "relay1", "relay2"]
    assert row == ["2025-01-02T03:04:05.678Z", "60.5", "", "61.0", "59.5", "60.333", "true", "true"]


def test_seed_configured_operators(db, monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_EMAIL", "boss@acme.io")
    monkeypatch.setattr(settings, "ADMIN_PASSWORD", "pw1")
    monkeypatch.setattr(settings, "VIEWER_EMAIL", "watcher@acme.io")
    monkeypatch.setattr(settings, "VIEWER_PASSWORD", "pw2")

    assert operators.seed_configured_operators(db) == ["boss@acme.io", "watcher@acme.io"]
    assert operators.seed_configured_operators(db) == []
    roles = {op.email: op.role for op in db.query(Operator).all()}
    assert roles == {"boss@acme.io": "admin", "watcher@acme.io": "viewer"}


def test_seed_configured_operators_skips_unset_pairs(db, monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_EMAIL", "")
    monkeypatch.setattr(settings, "ADMIN_PASSWORD", "")
    monkeypatch.setattr(settings, "VIEWER_EMAIL", "watcher@acme.io")
    monkeypatch.setattr(settings, "VIEWER_PASSWORD", "")

    assert operators.seed_configured_operators(db) == []
    assert db.query(Operator).count() == 0
