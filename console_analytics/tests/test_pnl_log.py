"""Tests for the daily P&L log."""

import datetime as dt
import json
import threading
from decimal import Decimal

from console_analytics.data.models import PnlSample
from console_analytics.data.pnl_log import PnlLogStore, pnl_log_filename


# 14:00 IST, after the daily cutoff.
AFTERNOON = dt.datetime(2026, 3, 2, 8, 30, tzinfo=dt.timezone.utc)
# 06:30 IST, before the daily cutoff.
EARLY = dt.datetime(2026, 3, 2, 1, 0, tzinfo=dt.timezone.utc)

IST = dt.timezone(dt.timedelta(hours=5, minutes=30))


def _clock(moment: dt.datetime):
    return lambda: moment


def _sample(minute: int, pnl: str) -> PnlSample:
    return PnlSample(
        timestamp=dt.datetime(2026, 3, 2, 10, minute, 0, tzinfo=IST),
        pnl=Decimal(pnl),
    )


def test_file_named_by_day(tmp_path) -> None:
    store = PnlLogStore(tmp_path, now=_clock(AFTERNOON))
    assert store.path.parent == tmp_path
    assert store.path.name == pnl_log_filename(AFTERNOON.astimezone().date())
    assert store.path.name.startswith("pnl_history_")


def test_append_preserves_order(tmp_path) -> None:
    store = PnlLogStore(tmp_path, now=_clock(AFTERNOON))
    samples = [_sample(1, "150.25"), _sample(0, "-20"), _sample(1, "150.25")]
    for sample in samples:
        store.append(sample)

    assert store.load_all() == samples


def test_writer_emits_one_object_per_line(tmp_path) -> None:
    store = PnlLogStore(tmp_path, now=_clock(AFTERNOON))
    store.append(_sample(5, "10.5"))
    store.append(_sample(6, "11"))

    lines = store.path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    assert not lines[0].startswith("[")
    assert set(json.loads(lines[0])) == {"Timestamp", "Pnl"}


def test_corrupt_line_is_skipped(tmp_path) -> None:
    store = PnlLogStore(tmp_path, now=_clock(AFTERNOON))
    store.path.write_text(
        '{"Timestamp": "2026-03-02T10:00:00+05:30", "Pnl": "100.5"}\n'
        '{"Timestamp": "2026-03-02T10:01:00+05:30", "Pnl": \n'
        "\n"
        '{"Timestamp": "2026-03-02T10:02:00+05:30", "Pnl": -42.75}\n',
        encoding="utf-8",
    )

    samples = store.load_all()

    assert [sample.pnl for sample in samples] == [Decimal("100.5"), Decimal("-42.75")]


def test_bad_field_values_are_skipped(tmp_path) -> None:
    store = PnlLogStore(tmp_path, now=_clock(AFTERNOON))
    store.path.write_text(
        '{"Timestamp": "yesterday", "Pnl": "1"}\n'
        '{"Timestamp": "2026-03-02T10:01:00+05:30", "Pnl": "abc"}\n'
        '{"Pnl": "3"}\n'
        "[1, 2]\n"
        '{"Timestamp": "2026-03-02T10:03:00+05:30", "Pnl": "4"}\n',
        encoding="utf-8",
    )
    # The first non-blank line is an object, so the file is read line by line.
    assert [sample.pnl for sample in store.load_all()] == [Decimal("4")]


def test_legacy_array_matches_line_encoding(tmp_path) -> None:
    records = [
        {"Timestamp": "2026-03-02T10:00:00.5+05:30", "Pnl": 100.5},
        {"Timestamp": "2026-03-02T10:01:00+05:30", "Pnl": -3},
    ]
    legacy_dir = tmp_path / "legacy"
    current_dir = tmp_path / "current"
    legacy = PnlLogStore(legacy_dir, now=_clock(AFTERNOON))
    current = PnlLogStore(current_dir, now=_clock(AFTERNOON))
    legacy.path.write_text("\n  " + json.dumps(records, indent=2), encoding="utf-8")
    current.path.write_text(
        "\n".join(json.dumps(record) for record in records) + "\n", encoding="utf-8"
    )

    assert legacy.load_all() == current.load_all()
    assert [sample.pnl for sample in legacy.load_all()] == [Decimal("100.5"), Decimal("-3")]


def test_unreadable_legacy_array_returns_empty(tmp_path) -> None:
    store = PnlLogStore(tmp_path, now=_clock(AFTERNOON))
    store.path.write_text('[{"Timestamp": "2026-03-02T10:00:00", "Pnl": 1', encoding="utf-8")
    assert store.load_all() == []


def test_missing_file_returns_empty(tmp_path) -> None:
    store = PnlLogStore(tmp_path, now=_clock(AFTERNOON))
    assert store.load_all() == []
    assert store.load_frame().empty


def test_stale_file_cleared_before_cutoff(tmp_path) -> None:
    first = PnlLogStore(tmp_path, now=_clock(EARLY))
    first.append(_sample(0, "1"))
    assert first.path.exists()

    second = PnlLogStore(tmp_path, now=_clock(EARLY))
    assert second.path == first.path
    assert not second.path.exists()
    assert second.load_all() == []


def test_existing_file_kept_after_cutoff(tmp_path) -> None:
    first = PnlLogStore(tmp_path, now=_clock(AFTERNOON))
    first.append(_sample(0, "1"))

    second = PnlLogStore(tmp_path, now=_clock(AFTERNOON))
    assert second.load_all() == [_sample(0, "1")]


def test_rotate_disabled_keeps_file(tmp_path) -> None:
    first = PnlLogStore(tmp_path, now=_clock(EARLY))
    first.append(_sample(0, "1"))

    reader = PnlLogStore(tmp_path, now=_clock(EARLY), rotate=False)
    assert reader.load_all() == [_sample(0, "1")]


def test_append_failure_does_not_raise(tmp_path) -> None:
    store = PnlLogStore(tmp_path, now=_clock(AFTERNOON))
    store.path.mkdir()
    store.append(_sample(0, "1"))


def test_concurrent_appends_do_not_interleave(tmp_path) -> None:
    store = PnlLogStore(tmp_path, now=_clock(AFTERNOON))

    def writer(offset: int) -> None:
        for i in range(50):
            store.append(_sample(i % 60, f"{offset}.{i:02d}"))

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    samples = store.load_all()
    assert len(samples) == 200
    for n in range(4):
        own = [s.pnl for s in samples if int(s.pnl) == n]
        assert own == [Decimal(f"{n}.{i:02d}") for i in range(50)]


def test_load_frame_columns(tmp_path) -> None:
    store = PnlLogStore(tmp_path, now=_clock(AFTERNOON))
    store.append(_sample(0, "10.5"))
    store.append(_sample(1, "-2"))
    frame = store.load_frame()
    assert list(frame.columns) == ["timestamp", "pnl"]
    assert frame["pnl"].tolist() == [10.5, -2.0]


def test_sample_round_trip() -> None:
    sample = PnlSample(
        timestamp=dt.datetime(2026, 3, 2, 10, 15, 30, 250000, tzinfo=IST),
        pnl=Decimal("-1234.5678"),
    )
    assert PnlSample.from_dict(json.loads(json.dumps(sample.to_dict()))) == sample


def test_invalid_utf8_line_is_skipped(tmp_path) -> None:
    store = PnlLogStore(tmp_path, now=_clock(AFTERNOON))
    store.path.write_bytes(
        b'{"Timestamp": "2026-03-02T10:00:00+05:30", "Pnl": 100.5}\n'
        b'{"Timestamp": "2026-03-02T10:01:00+05:30", "Pnl": "\xff\xfe"}\n'
        b'{"Timestamp": "2026-03-02T10:02:00+05:30", "Pnl": -42.75}\n'
    )

    samples = store.load_all()

    assert [sample.pnl for sample in samples] == [Decimal("100.5"), Decimal("-42.75")]


def test_invalid_utf8_in_legacy_array_skips_entry(tmp_path) -> None:
    store = PnlLogStore(tmp_path, now=_clock(AFTERNOON))
    store.path.write_bytes(
        b'[{"Timestamp": "2026-03-02T10:00:00+05:30", "Pnl": 1.5},\n'
        b' {"Timestamp": "2026-03-02T10:01:00+05:30", "Pnl": "\xff"},\n'
        b' {"Timestamp": "2026-03-02T10:02:00+05:30", "Pnl": 2}]\n'
    )
    assert [sample.pnl for sample in store.load_all()] == [Decimal("1.5"), Decimal("2")]


def test_pnl_written_as_json_number(tmp_path) -> None:
    store = PnlLogStore(tmp_path, now=_clock(AFTERNOON))
    store.append(_sample(0, "-1234.5"))
    record = json.loads(store.path.read_text(encoding="utf-8"))
    assert record["Pnl"] == -1234.5
