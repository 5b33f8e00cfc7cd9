"""
Tests for the file level lasreader and laswriter.
"""

import numpy as np
import pytest

import pylasfile
from laserrors import InvalidSignature, UnsupportedPointFormat


@pytest.fixture
def xyz():
    x = np.array([1.5, 2.25, 3.125, 4.0])
    y = np.array([10.0, 20.0, 30.5, 40.0])
    z = np.array([-1.0, 0.0, 1.0, 2.5])
    return x, y, z


class TestWriter:

    def test_points_and_wkt_round_trip(self, tmp_path, xyz, wgs84wkt):
        filename = str(tmp_path / "points.las")
        with pylasfile.laswriter(filename, 1, 4, 1) as writer:
            writer.writeVLR_WKT(wgs84wkt)
            writer.writepointlist(*xyz)

        with pylasfile.lasreader(filename) as reader:
            assert reader.issignaturevalid()
            hdr = reader.readhdr()
            assert hdr.version == (1, 4)
            assert hdr.NumberofVariableLengthRecords == 1
            assert hdr.Offsettopointdata == 375 + 54 + len(wgs84wkt) + 1
            assert hdr.GlobalEncoding & 16
            assert hdr.pointcount == 4
            assert hdr.LegacyNumberofpointrecords == 4
            assert hdr.Numberofpointrecords == 4
            assert hdr.Numberofpointsbyreturn[0] == 4
            assert hdr.LegacyNumberofpointsbyreturn == [4, 0, 0, 0, 0]
            assert (hdr.MinX, hdr.MaxX) == pytest.approx((1.5, 4.0))
            assert (hdr.MinZ, hdr.MaxZ) == pytest.approx((-1.0, 2.5))

            vlrs = list(reader.readvlrs())
            assert len(vlrs) == 1
            vlr, payload = vlrs[0]
            assert vlr.RecordID == 2112
            assert reader.readvlrpayload(payload).rstrip(b"\0").decode() == wgs84wkt

            np.testing.assert_allclose(reader.readxyz(), np.column_stack(xyz), atol=1e-9)

    def test_version_12_format_3(self, tmp_path):
        filename = str(tmp_path / "v12.las")
        with pylasfile.laswriter(filename, 1, 2, 3) as writer:
            writer.hdr.Xscalefactor = writer.hdr.Yscalefactor = writer.hdr.Zscalefactor = 0.01
            for rn, raw in ((1, 100), (2, 200), (2, 300)):
                point = writer.newpoint()
                point.x = raw
                point.red, point.green, point.blue = 65535, 0, 128
                point.gpstime = 12345.678
                pylasfile.setpointflags(point, returnnumber=rn, numberreturns=2)
                writer.writepoint(point)

        with pylasfile.lasreader(filename) as reader:
            hdr = reader.readhdr()
            assert hdr.HeaderSize == 227
            assert hdr.LegacyNumberofpointsbyreturn == [1, 2, 0, 0, 0]
            points = list(reader.points())
            assert [p.x for p in points] == [100, 200, 300]
            assert points[1].gpstime == 12345.678
            assert points[2].red == 65535 and points[2].blue == 128
            assert [p.x for p in reader.points(start=1)] == [200, 300]
            reader.seekPointRecordStart()
            assert reader.fileptr.tell() == 227

    def test_format6_has_no_legacy_count(self, tmp_path, xyz):
        filename = str(tmp_path / "f6.las")
        with pylasfile.laswriter(filename, 1, 4, 6) as writer:
            writer.writepointlist(*xyz)

        with pylasfile.lasreader(filename) as reader:
            hdr = reader.readhdr()
            assert hdr.LegacyNumberofpointrecords == 0
            assert hdr.Numberofpointrecords == 4
            assert reader.readxyz().shape == (4, 3)

    def test_vlr_after_points_is_rejected(self, tmp_path, xyz, wgs84wkt):
        with pylasfile.laswriter(str(tmp_path / "late.las")) as writer:
            writer.writepointlist(*xyz)
            with pytest.raises(ValueError):
                writer.writeVLR_WKT(wgs84wkt)

    def test_empty_file(self, tmp_path):
        filename = str(tmp_path / "empty.las")
        with pylasfile.laswriter(filename, 1, 2, 0):
            pass
        with pylasfile.lasreader(filename) as reader:
            hdr = reader.readhdr()
            assert hdr.pointcount == 0
            assert list(reader.points()) == []
            assert reader.readxyz().shape == (0, 3)

    def test_unsupported_format_opens_nothing(self, tmp_path):
        filename = tmp_path / "bad.las"
        with pytest.raises(UnsupportedPointFormat):
            pylasfile.laswriter(str(filename), 1, 4, 8)
        assert not filename.exists()

    @pytest.mark.parametrize("minor", [0, 1, 2, 3])
    def test_format6_needs_version_14(self, tmp_path, minor):
        filename = tmp_path / "f6old.las"
        with pytest.raises(ValueError):
            pylasfile.laswriter(str(filename), 1, minor, 6)
        assert not filename.exists()

    def test_closed_on_error(self, tmp_path):
        filename = str(tmp_path / "error.las")
        with pytest.raises(RuntimeError):
            with pylasfile.laswriter(filename) as writer:
                raise RuntimeError("stop")
        assert writer.fileptr.closed


class TestReader:

    def test_not_a_las_file(self, tmp_path):
        filename = tmp_path / "notlas.las"
        filename.write_bytes(b"LASX" + b"\0" * 400)
        with pylasfile.lasreader(str(filename)) as reader:
            assert not reader.issignaturevalid()
            with pytest.raises(InvalidSignature):
                reader.readhdr()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            pylasfile.lasreader(str(tmp_path / "missing.las"))

    def test_no_handle_left_when_size_fails(self, tmp_path, monkeypatch):
        filename = tmp_path / "points.las"
        filename.write_bytes(b"LASF")
        opened = []

        def getsize(path):
            raise PermissionError(path)

        def tracking_open(*args, **kwargs):
            opened.append(args)
            return open(*args, **kwargs)

        monkeypatch.setattr(pylasfile.os.path, "getsize", getsize)
        monkeypatch.setattr(pylasfile, "open", tracking_open, raising=False)
        with pytest.raises(PermissionError):
            pylasfile.lasreader(str(filename))
        assert opened == []

    def test_reads_header_on_demand(self, tmp_path, xyz):
        filename = str(tmp_path / "lazy.las")
        with pylasfile.laswriter(filename, 1, 3, 0) as writer:
            writer.writepointlist(*xyz)
        with pylasfile.lasreader(filename) as reader:
            assert len(list(reader.points())) == 4
            assert reader.hdr.HeaderSize == 235
            assert reader.fileSize == 235 + 4 * 20


def test_create_output_file_name(tmp_path):
    path = tmp_path / "out" / "points.txt"
    assert pylasfile.createOutputFileName(str(path)) == str(path)
    path.write_text("x")
    assert pylasfile.createOutputFileName(str(path)) == str(tmp_path / "out" / "points_1.txt")
