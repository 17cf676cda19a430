"""Tests for the fan-in aggregator."""

import threading
import time

from logagg.aggregator import merge
from logagg.channel import Channel


class TestMerge:
    def test_multiple_channels(self, cancel, collect, feed):
        ch1 = feed(["msg1-ch1", "msg2-ch1"])
        ch2 = feed(["msg1-ch2", "msg2-ch2"])
        ch3 = feed(["msg1-ch3"])

        messages = collect(merge([ch1, ch2, ch3], cancel))
        assert sorted(messages) == [
            "msg1-ch1", "msg1-ch2", "msg1-ch3", "msg2-ch1", "msg2-ch2",
        ]

    def test_empty_channels(self, cancel, collect):
        ch1, ch2 = Channel(), Channel()
        ch1.close()
        ch2.close()
        assert collect(merge([ch1, ch2], cancel)) == []

    def test_no_channels_closes_immediately(self, cancel, collect):
        start = time.monotonic()
        assert collect(merge([], cancel), timeout=1.0) == []
        assert time.monotonic() - start < 1.0

    def test_single_channel(self, cancel, collect, feed):
        messages = collect(merge([feed(["msg1", "msg2", "msg3"])], cancel))
        assert messages == ["msg1", "msg2", "msg3"]

    def test_per_source_order_preserved(self, cancel, collect, feed):
        a = feed([f"a{i}" for i in range(50)], delay=0.001)
        b = feed([f"b{i}" for i in range(50)])
        messages = collect(merge([a, b], cancel))

        assert [m for m in messages if m.startswith("a")] == [f"a{i}" for i in range(50)]
        assert [m for m in messages if m.startswith("b")] == [f"b{i}" for i in range(50)]

    def test_interleaved_timing(self, cancel, collect):
        ch1, ch2 = Channel(), Channel()

        def first():
            ch1.send("first")
            time.sleep(0.01)
            ch1.send("third")
            ch1.close()

        def second():
            time.sleep(0.005)
            ch2.send("second")
            ch2.close()

        threading.Thread(target=first, daemon=True).start()
        threading.Thread(target=second, daemon=True).start()

        assert sorted(collect(merge([ch1, ch2], cancel))) == ["first", "second", "third"]

    def test_large_volume(self, cancel, collect, feed):
        channels = [feed(["msg"] * 100, name=f"ch{i}") for i in range(10)]
        assert len(collect(merge(channels, cancel), timeout=10.0)) == 1000

    def test_stays_open_until_all_inputs_close(self, cancel, collect):
        done, pending = Channel(), Channel()
        done.close()
        merged = merge([done, pending], cancel)

        time.sleep(0.1)
        assert not merged.closed

        pending.close()
        assert collect(merged) == []


class TestMergeCancellation:
    def test_closes_after_cancel(self, cancel, collect):
        def endless(ch):
            while ch.send("msg", cancel):
                pass
            ch.close()

        ch1, ch2 = Channel("ch1"), Channel("ch2")
        threading.Thread(target=endless, args=(ch1,), daemon=True).start()
        threading.Thread(target=endless, args=(ch2,), daemon=True).start()

        merged = merge([ch1, ch2], cancel)
        merged.recv()
        merged.recv()

        cancel.set()
        rest = collect(merged, timeout=2.0)
        assert len(rest) <= 1

    def test_abandons_source_that_never_closes(self, cancel, collect):
        silent = Channel("silent")
        merged = merge([silent], cancel)

        time.sleep(0.05)
        cancel.set()
        assert collect(merged, timeout=2.0) == []
        assert not silent.closed
