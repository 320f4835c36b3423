import numpy as np
import pytest

from interBATS import ShortReadError, TruncatedHeaderError, read_log

LOG = """Volume averages, fluxes, etc
it t dt rho pmin
       10  1.000000E+00  1.0E-01  5.5  0.25
       20  2.000000E+00  1.0E-01  5.6  0.26

       30  3.000000E+00  1.0E-01  5.7  0.27
"""


def test_read_log(tmp_path):
    path = tmp_path / "log_n000030.log"
    path.write_text(LOG)

    head, table = read_log(path)

    assert head.headline == "Volume averages, fluxes, etc"
    assert head.variables == ("it", "t", "dt", "rho", "pmin")
    assert head.nw == 5
    assert head.nrows == 3
    assert table.shape == (5, 3)
    assert table.dtype == np.float64
    np.testing.assert_array_equal(table[0], [10, 20, 30])
    np.testing.assert_allclose(table[3], [5.5, 5.6, 5.7])


def test_header_only(tmp_path):
    path = tmp_path / "empty.log"
    path.write_text("title\nit t\n")
    head, table = read_log(path)
    assert head.nrows == 0
    assert table.shape == (2, 0)


def test_missing_variable_line(tmp_path):
    path = tmp_path / "bad.log"
    path.write_text("title only\n")
    with pytest.raises(TruncatedHeaderError):
        read_log(path)


@pytest.mark.parametrize("row", ["1 2 3", "1 2 x 4 5"])
def test_bad_row(tmp_path, row):
    path = tmp_path / "row.log"
    path.write_text(f"title\nit t dt rho pmin\n{row}\n")
    with pytest.raises(ShortReadError):
        read_log(path)
