from datetime import datetime, timedelta, timezone

from app.utils.time import coerce_datetime, epoch_ms, format_local, iso_from_epoch, utc_now


def test_coerce_datetime_parses_z_suffix():
    dt = coerce_datetime("2026-01-01T00:00:00Z")
    assert dt is not None
    assert dt.tzinfo is not None
    assert dt.utcoffset() == timedelta(0)
    assert dt.isoformat().endswith("+00:00")


def test_coerce_datetime_parses_offset():
    dt = coerce_datetime("2026-01-01T02:00:00+02:00")
    assert dt is not None
    assert dt.tzinfo is not None
    assert dt.utcoffset() == timedelta(0)
    assert dt.hour == 0


def test_coerce_datetime_parses_naive_as_utc():
    dt = coerce_datetime("2026-01-01T00:00:00")
    assert dt is not None
    assert dt.tzinfo is not None
    assert dt.utcoffset() == timedelta(0)

    time_diff = utc_now() - dt
    assert isinstance(time_diff, timedelta)


def test_format_local_renders_jakarta_time():
    dt = datetime(2026, 10, 19, 7, 5, 9, tzinfo=timezone.utc)
    assert format_local(dt) == "19/10/2026, 14.05.09"


def test_format_local_treats_naive_as_utc():
    assert format_local(datetime(2026, 1, 1, 20, 0, 0)) == "2/1/2026, 03.00.00"


def test_iso_from_epoch_uses_z_suffix():
    assert iso_from_epoch(0) == "1970-01-01T00:00:00.000Z"


def test_epoch_ms_from_seconds():
    assert epoch_ms(1.5) == 1500
    assert epoch_ms() > 0


def test_coerce_datetime_rejects_garbage():
    assert coerce_datetime("kemarin") is None
    assert coerce_datetime(12345) is None
    assert coerce_datetime(None) is None
