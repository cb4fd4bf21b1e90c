import os
from unittest import mock

from distlab.mrapps.rtiming import map_func, nparallel, reduce_func


def test_map_emits_ten_fixed_keys():
    result = map_func("any", "thing")
    assert [kv.key for kv in result] == list("abcdefghij")
    assert {kv.value for kv in result} == {"1"}


@mock.patch("time.sleep")
def test_reduce_reports_parallelism(sleep, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert reduce_func("a", ["1"]) == "1"
    assert list(tmp_path.iterdir()) == []


@mock.patch("time.sleep")
def test_nparallel_phase_is_separate(sleep, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / f"mr-worker-map-{os.getppid()}").write_text("x")
    assert nparallel("reduce") == 1