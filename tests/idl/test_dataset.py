import numpy as np
import pytest

import interBATS.IDL.dataset as dataset_module
from conftest import make_snapshot
from interBATS import (
    AmbiguousMatchError,
    FileType,
    IndexOutOfRangeError,
    NoMatchError,
    ReaderOptions,
    ShortReadError,
    UnrecognizedFormatError,
    describe_file,
    read_dataset,
    read_headers,
)


def test_free_format_ascii_single_snapshot(tmp_path):
    text = (
        "1d test run\n"
        "       0  0.0  1  0  2\n"
        "       5\n"
        "x rho p\n"
        "0.0 1.0 10.0\n"
        "1.0 2.0 20.0\n"
        "2.0 3.0 30.0\n"
        "3.0 4.0 40.0\n"
        "4.0 5.0 50.0\n"
    )
    (tmp_path / "1d_raw_t0000.out").write_text(text)

    data = read_dataset("1d_raw*", tmp_path)

    assert data.file.type is FileType.ASCII
    assert data.file.nsnapshots == 1
    assert data.head.variables == ("x", "rho", "p")
    assert data.x.shape == (5, 1)
    assert data.w.shape == (5, 2)
    assert data.x.dtype == np.float64
    np.testing.assert_array_equal(data.x[:, 0], [0, 1, 2, 3, 4])
    np.testing.assert_array_equal(data.w[:, 0], [1, 2, 3, 4, 5])
    np.testing.assert_array_equal(data["p"], [10, 20, 30, 40, 50])


def test_real4_2d_values(write_idl):
    snap = make_snapshot((4, 3), 2)
    path = write_idl("y=0_raw.out", [snap], "real4")

    data = read_dataset("y=0_raw", path.parent)

    assert data.file.type is FileType.REAL4
    assert data.x.shape == (4, 3, 2)
    assert data.w.shape == (4, 3, 2)
    assert data.x.dtype == np.float32
    np.testing.assert_allclose(data.x, snap.x.astype(np.float32))
    np.testing.assert_allclose(data.w, snap.w.astype(np.float32))
    # first extent runs along x, second along y
    assert data["x"][1, 0] > data["x"][0, 0]
    assert data["y"][0, 1] > data["y"][0, 0]


def test_real8_3d_values(write_idl):
    snap = make_snapshot((3, 2, 4), 3, neqpar=2)
    path = write_idl("3d_raw.out", [snap], "real8")

    data = read_dataset("3d_raw.out", path.parent)

    assert data.file.type is FileType.REAL8
    assert data.x.dtype == np.float64
    np.testing.assert_array_equal(data.x, snap.x)
    np.testing.assert_array_equal(data.w, snap.w)
    assert data.head.parameters() == {"g": 1.5, "rbody": 2.5}


@pytest.mark.parametrize("kind", ["ascii", "real4", "real8"])
def test_each_snapshot_by_index(write_idl, kind):
    snaps = [
        make_snapshot((5, 2), 2, seed=i, iteration=100 * i, time=1.5 * i)
        for i in range(3)
    ]
    path = write_idl(f"multi_{kind}.out", snaps, kind)

    heads = read_headers(path.name, path.parent)
    assert [h.iteration for h in heads] == [0, 100, 200]

    for i, snap in enumerate(snaps):
        data = read_dataset(path.name, path.parent, snapshot_index=i)
        assert data.file.nsnapshots == 3
        assert data.head == heads[i]
        np.testing.assert_allclose(data.w, snap.w, rtol=1e-6)


def test_ascii_and_real4_agree(write_idl):
    snap = make_snapshot((6, 4), 3, neqpar=1)
    text = write_idl("cut_ascii.out", [snap], "ascii")
    binary = write_idl("cut_real4.out", [snap], "real4")

    a = read_dataset(text.name, text.parent)
    b = read_dataset(binary.name, binary.parent)

    assert a.head.variables == b.head.variables
    assert a.head.nx == b.head.nx
    np.testing.assert_allclose(a.x, b.x, rtol=1e-6, atol=1e-7)
    np.testing.assert_allclose(a.w, b.w, rtol=1e-6, atol=1e-7)


def test_extended_big_endian(write_idl):
    snap = make_snapshot((8,), 1)
    path = write_idl("be.out", [snap, snap], "real8", extended=True, order=">")

    data = read_dataset("be.out", path.parent, snapshot_index=1)

    assert data.file.byteorder == "big"
    assert data.file.extended
    np.testing.assert_array_equal(data.w[:, 0], snap.w[:, 0])


def test_index_out_of_range(write_idl):
    path = write_idl("one.out", [make_snapshot((3,), 1)])
    with pytest.raises(IndexOutOfRangeError):
        read_dataset("one.out", path.parent, snapshot_index=1)
    with pytest.raises(IndexOutOfRangeError):
        read_dataset("one.out", path.parent, snapshot_index=-1)


def test_no_match(tmp_path):
    with pytest.raises(NoMatchError):
        read_dataset("missing*", tmp_path)


def test_ambiguous_match_opens_nothing(write_idl, monkeypatch):
    snap = make_snapshot((3,), 1)
    path = write_idl("z=0_a.out", [snap])
    write_idl("z=0_b.out", [snap])

    def _fail(*args, **kwargs):
        raise AssertionError("file opened")

    monkeypatch.setattr(dataset_module, "BinaryReader", _fail)
    with pytest.raises(AmbiguousMatchError) as exc:
        read_dataset("z=0_*", path.parent)
    assert exc.value.matches == ["z=0_a.out", "z=0_b.out"]


def test_arrays_are_read_only(write_idl):
    path = write_idl("ro.out", [make_snapshot((3,), 1)])
    data = read_dataset("ro.out", path.parent)
    with pytest.raises(ValueError):
        data.w[0, 0] = 1.0
    with pytest.raises(KeyError):
        data["nope"]


def test_log_file_is_not_a_dataset(tmp_path):
    (tmp_path / "log_n1.log").write_text("title\nit t rho\n1 0.0 1.0\n")
    with pytest.raises(UnrecognizedFormatError, match="read_log"):
        read_dataset("log_n1.log", tmp_path)


def test_binary_file_shorter_than_one_snapshot(write_idl):
    path = write_idl("cut.out", [make_snapshot((10,), 2)], "real4")
    payload = path.read_bytes()
    path.write_bytes(payload[:-20])
    with pytest.raises(IndexOutOfRangeError):
        read_dataset("cut.out", path.parent)


def test_truncated_ascii_body(tmp_path):
    (tmp_path / "short.out").write_text("h\n 0 0.0 1 0 1\n 4\nx rho\n0 1\n1 2\n")
    with pytest.raises(ShortReadError):
        read_dataset("short.out", tmp_path)


def test_describe_file_and_repr(write_idl):
    path = write_idl("d.out", [make_snapshot((4,), 1)] * 2, "real8")
    desc = describe_file(path)

    assert desc.type is FileType.REAL8
    assert desc.nsnapshots == 2
    assert desc.nbytes == 2 * desc.snapshot_size
    assert "snapshots=2" in repr(desc)

    data = read_dataset("d.out", path.parent, options=ReaderOptions(verbose=True))
    assert "fields=['w0']" in repr(data)
