"""
Shared fixtures for the las codec tests.

Synthetic LAS files are built in memory with the codec's own header, VLR and
point writers so each test controls every byte it reads back.
"""

import io

import pytest

import pylasfile


WGS84WKT = (
    'GEOGCS["WGS 84",DATUM["World_Geodetic_System_1984",SPHEROID["WGS 84",6378137,298.257223563,'
    'AUTHORITY["EPSG","7030"]],AUTHORITY["EPSG","6326"]],PRIMEM["Greenwich",0,AUTHORITY["EPSG","8901"]],'
    'UNIT["degree",0.01745329251994328,AUTHORITY["EPSG","9122"]],AUTHORITY["EPSG","4326"]]'
)


@pytest.fixture
def wgs84wkt():
    return WGS84WKT


@pytest.fixture
def makelas():
    """
    Factory building a LAS file in a BytesIO.

    Args:
        major, minor: header version
        pointformat: point data record format
        points: list of dicts of point attributes
        vlrs: list of (userid, recordid, payload bytes)
        scale, offset: applied to all three axes

    Returns:
        (stream, header) with the stream rewound to 0
    """
    def _make(major=1, minor=2, pointformat=3, points=(), vlrs=(), scale=0.01, offset=0.0):
        hdr = pylasfile.lashdr(major, minor, pointformat)
        hdr.Xscalefactor = hdr.Yscalefactor = hdr.Zscalefactor = scale
        hdr.Xoffset = hdr.Yoffset = hdr.Zoffset = offset
        hdr.NumberofVariableLengthRecords = len(vlrs)
        hdr.Offsettopointdata = hdr.HeaderSize + sum(54 + len(payload) for _, _, payload in vlrs)
        hdr.LegacyNumberofpointrecords = len(points)
        if minor >= 4:
            hdr.Numberofpointrecords = len(points)

        stream = io.BytesIO()
        pylasfile.writeheader(stream, hdr)
        for userid, recordid, payload in vlrs:
            pylasfile.writevlr(stream, pylasfile.lasvlr(userid, recordid, "test record"), payload)
        for values in points:
            point = pylasfile.laspoint(pointformat)
            for name, value in values.items():
                setattr(point, name, value)
            pylasfile.writepoint(stream, hdr, point)
        stream.seek(0)
        return stream, hdr

    return _make
