"""Tests for CLI output helpers."""

import json
from datetime import datetime, timezone

from certstore.cli._output import print_error, print_object, print_records
from certstore.types import KeyInfo, LeaseInfo

WHEN = datetime(2026, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc)


def test_print_records_json(capsys):
    leases = [
        LeaseInfo(key="issue_cert_a", expires=WHEN, active=True),
        LeaseInfo(key="issue_cert_b", expires=WHEN, active=False),
    ]
    print_records(leases, json_mode=True)
    data = json.loads(capsys.readouterr().out)
    assert [row["key"] for row in data] == ["issue_cert_a", "issue_cert_b"]
    assert data[1]["active"] is False
    assert data[0]["expires"].startswith("2026-01-02T03:04:05.678")


def test_print_records_selected_fields(capsys):
    info = KeyInfo(key="certs/a.pem", size=27, modified=WHEN)
    print_records([info], fields=["key", "size"], json_mode=True)
    assert json.loads(capsys.readouterr().out) == [{"key": "certs/a.pem", "size": 27}]


def test_print_records_text(capsys):
    print_records([LeaseInfo(key="issue_cert_a", expires=WHEN, active=True)])
    lines = capsys.readouterr().out.splitlines()
    assert lines[0].split() == ["key", "expires", "active"]
    assert set(lines[1]) <= {"-", " "}
    assert "2026-01-02 03:04:05.678+00:00" in lines[2]
    assert lines[2].endswith("yes")


def test_print_records_empty(capsys):
    print_records([])
    assert capsys.readouterr().out == ""


def test_print_object_json(capsys):
    print_object({"key": "val"}, json_mode=True)
    out = capsys.readouterr().out
    assert json.loads(out) == {"key": "val"}


def test_print_object_text(capsys):
    print_object({"key": "val"}, json_mode=False)
    out = capsys.readouterr().out
    assert "key: val" in out


def test_print_object_list_text(capsys):
    print_object(["abc", "abcde"], json_mode=False)
    out = capsys.readouterr().out
    assert "  abc\n  abcde\n" == out


def test_print_error(capsys):
    print_error("something broke")
    err = capsys.readouterr().err
    assert "Error: something broke" in err
