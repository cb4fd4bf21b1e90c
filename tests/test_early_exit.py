from unittest import mock

from distlab.mr.protocol import KeyValue
from distlab.mrapps.early_exit import SLOW_REDUCE_SECONDS, map_func, reduce_func


def test_map_emits_filename_once():
    assert map_func("pg-grimm.txt", "lots of words here") == [KeyValue("pg-grimm.txt", "1")]


@mock.patch("time.sleep")
def test_reduce_fast_key(sleep):
    assert reduce_func("pg-grimm.txt", ["1", "1"]) == "2"
    sleep.assert_not_called()


@mock.patch("time.sleep")
def test_reduce_sherlock_is_slow(sleep):
    assert reduce_func("pg-sherlock_holmes.txt", ["1"]) == "1"
    sleep.assert_called_once_with(SLOW_REDUCE_SECONDS)


@mock.patch("time.sleep")
def test_reduce_tom_is_slow(sleep):
    assert reduce_func("pg-tom_sawyer.txt", ["1", "1", "1"]) == "3"
    assert sleep.call_args_list == [mock.call(SLOW_REDUCE_SECONDS)]