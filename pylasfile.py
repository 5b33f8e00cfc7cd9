#name:		  pylasfile
#created:	   July 2017
#by:			p.kennedy@guardiangeomatics.com
#description:   python module to read and write a ASPRS LAS file natively
#notes:		 See las2txt.py for an example how to use this
#based on ASPRS LAS 1.0 to 1.4-R13 15 July 2013

# LAS FORMAT DEFINITION:
# The format contains binary data consisting of
# A public header block,
# Any number of (optional) Variable Length Records (VLRs)
# The Point Data Records
# Any number of (optional) Extended Variable Length Records (EVLRs).
#
# All data are in little-endian format.
# The public header block contains generic data such as point numbers and point data bounds.
# The layout of every block is described by the field tables in lasschema.py.
# The codecs here walk those tables in order, so there is one decoder and one encoder for all versions.

import os
import os.path
import pprint
import datetime
import logging
import math

import numpy as np

import lasio
import lasschema
from lasfield import schemasize
from laserrors import InvalidSignature, TruncatedRead, TruncatedVlr

logger = logging.getLogger(__name__)

LASFSIGNATURE = b"LASF"

###############################################################################
class lasrecord:
	'''a record whose attributes are the fields of a schema, in schema order'''
	def __init__(self, schema):
		self.schema = schema
		for f in schema:
			setattr(self, f.name, f.default())

	############################################################################
	def __str__(self):
		'''
		pretty print this class
		'''
		return pprint.pformat(dict(self.items()), sort_dicts=False)

	def __repr__(self):
		return "%s(%s)" % (self.__class__.__name__, ", ".join("%s=%r" % (k, v) for k, v in self.items()))

	############################################################################
	def __eq__(self, other):
		'''two records are equal when every field encodes to the same bytes'''
		if not isinstance(other, lasrecord):
			return NotImplemented
		if self.names() != other.names():
			return False
		for f in self.schema:
			if f.pack(getattr(self, f.name)) != f.pack(getattr(other, f.name)):
				return False
		return True

	############################################################################
	def names(self):
		return [f.name for f in self.schema]

	def items(self):
		return [(f.name, getattr(self, f.name)) for f in self.schema]

	def values(self):
		return [getattr(self, f.name) for f in self.schema]

	def size(self):
		return schemasize(self.schema)

	############################################################################
	def read(self, stream):
		'''
		decode every field in schema order. the attributes are only updated once
		the whole record has been read, so a truncated record leaves nothing behind
		'''
		values = [f.decode(stream) for f in self.schema]
		for f, value in zip(self.schema, values):
			setattr(self, f.name, value)
		return self

	############################################################################
	def write(self, stream):
		'''encode every field in schema order'''
		for f in self.schema:
			f.encode(stream, getattr(self, f.name))

###############################################################################
class lashdr(lasrecord):
	'''the public header block. the field set depends on the version'''
	def __init__(self, versionmajor=1, versionminor=4, pointformat=1):
		super().__init__(lasschema.headerschema(versionmajor, versionminor))

		# create a default template for a header.  We use this for writing purposes
		self.FileSignature 							= LASFSIGNATURE.decode("ascii")
		self.VersionMajor 							= versionmajor
		self.VersionMinor 							= versionminor
		self.SystemIdentifier 						= 'pylasfile'
		self.GeneratingSoftware 					= 'pylasfile'
		self.FileCreationDayofYear 					= datetime.datetime.now().timetuple().tm_yday
		self.FileCreationYear 						= datetime.datetime.now().year
		self.HeaderSize 							= self.size()
		self.Offsettopointdata 						= self.HeaderSize
		self.PointDataRecordFormat 					= pointformat
		if pointformat in lasschema.SUPPORTEDPOINTFORMATS:
			self.PointDataRecordLength 				= lasschema.pointrecordlength(pointformat)
		self.Xscalefactor 							= 0.001
		self.Yscalefactor 							= 0.001
		self.Zscalefactor 							= 0.001

	############################################################################
	@property
	def version(self):
		return (self.VersionMajor, self.VersionMinor)

	@property
	def pointcount(self):
		return pointcount(self)

	############################################################################
	def setpointformat(self, value):
		'''change the point format and keep the record length in step'''
		self.PointDataRecordLength = lasschema.pointrecordlength(value)
		self.PointDataRecordFormat = value

###############################################################################
class laspoint(lasrecord):
	'''a point data record. raw x, y, z are scaled integers, see scalexyz()'''
	def __init__(self, pointformat=1, schema=None):
		if schema is None:
			schema = lasschema.pointschema(pointformat)
		super().__init__(schema)
		self.pointformat = pointformat

###############################################################################
class lasvlr(lasrecord):
	'''a variable length record header. the payload is not part of the record'''
	def __init__(self, userid="", recordid=0, description="", schema=None):
		super().__init__(schema or lasschema.vlrschema())
		self.UserID = userid
		self.RecordID = recordid
		self.Description = description

	def __str__(self):
		return "\n".join("%s: %s" % (k, str(v).rstrip("\0")) for k, v in self.items())

###############################################################################
def checksignature(stream):
	'''return True if the stream starts with LASF. the stream position is not disturbed'''
	curr = stream.tell()
	try:
		stream.seek(0, 0)
		return stream.read(len(LASFSIGNATURE)) == LASFSIGNATURE
	finally:
		stream.seek(curr, 0)

###############################################################################
def sniffversion(stream):
	'''
	read the version and point format bytes from the header so we know which schema to use.
	returns (major, minor, pointformat) and leaves the stream where it was
	'''
	curr = stream.tell()
	try:
		stream.seek(lasschema.VERSIONMAJOROFFSET, 0)
		major = lasio.readuint(stream, 1)
		minor = lasio.readuint(stream, 1)
		stream.seek(lasschema.POINTFORMATOFFSET, 0)
		pointformat = lasio.readuint(stream, 1)
	finally:
		stream.seek(curr, 0)
	return major, minor, pointformat

###############################################################################
def readheader(stream):
	'''
	read the las file header from the start of the stream
	'''
	stream.seek(0, 0)
	signature = stream.read(len(LASFSIGNATURE))
	if signature != LASFSIGNATURE:
		raise InvalidSignature(signature)

	major, minor, pointformat = sniffversion(stream)
	hdr = lashdr(major, minor, pointformat)
	stream.seek(0, 0)
	hdr.read(stream)
	logger.debug("read las %d.%d header, point format %d, %d points", major, minor, pointformat, pointcount(hdr))
	return hdr

###############################################################################
def writeheader(stream, hdr):
	'''
	write the header to the start of the stream. the schema comes from the version
	recorded in the header itself, so changing VersionMinor changes what is written
	'''
	schema = lasschema.headerschema(hdr.VersionMajor, hdr.VersionMinor)
	stream.seek(0, 0)
	for f in schema:
		f.encode(stream, getattr(hdr, f.name, f.default()))

###############################################################################
def pointcount(hdr):
	'''the legacy 32 bit count or the 1.4 64 bit count, whichever is larger'''
	return max(hdr.LegacyNumberofpointrecords, getattr(hdr, "Numberofpointrecords", 0) or 0)

###############################################################################
def pointstride(hdr, schema):
	'''
	the number of bytes from one point to the next. records may be longer than the
	schema when the file carries extra bytes per point
	'''
	return max(hdr.PointDataRecordLength, schemasize(schema))

###############################################################################
def iteratepoints(stream, hdr, start=0):
	'''
	lazily decode the point records, one at a time, starting at point number start.
	calling this again restarts the iteration from the point data offset
	'''
	schema = lasschema.pointschema(hdr.PointDataRecordFormat)
	return _pointgenerator(stream, hdr, schema, start)

def _pointgenerator(stream, hdr, schema, start):
	pointformat = hdr.PointDataRecordFormat
	stride = pointstride(hdr, schema)
	extra = stride - schemasize(schema)
	count = pointcount(hdr)

	stream.seek(hdr.Offsettopointdata + (start * stride), 0)
	for _ in range(start, count):
		point = laspoint(pointformat, schema).read(stream)
		if extra:
			lasio.readbytes(stream, extra)
		yield point

###############################################################################
def readpoint(stream, hdr):
	'''decode a single point at the current stream position'''
	schema = lasschema.pointschema(hdr.PointDataRecordFormat)
	point = laspoint(hdr.PointDataRecordFormat, schema).read(stream)
	extra = pointstride(hdr, schema) - schemasize(schema)
	if extra:
		lasio.readbytes(stream, extra)
	return point

###############################################################################
def writepoint(stream, hdr, point):
	'''encode a single point at the current stream position, zero filling any extra bytes'''
	if point.pointformat != hdr.PointDataRecordFormat:
		raise ValueError("point format %d does not match header point format %d" % (point.pointformat, hdr.PointDataRecordFormat))
	point.write(stream)
	extra = pointstride(hdr, point.schema) - point.size()
	if extra:
		stream.write(b"\0" * extra)

###############################################################################
def scalexyz(point, hdr):
	'''convert the raw scaled integers of a point into real world coordinates'''
	return ((point.x * hdr.Xscalefactor) + hdr.Xoffset,
			(point.y * hdr.Yscalefactor) + hdr.Yoffset,
			(point.z * hdr.Zscalefactor) + hdr.Zoffset)

###############################################################################
def unscalexyz(hdr, x, y, z):
	'''convert real world coordinates into the raw scaled integers stored in a point'''
	return (int(round((x - hdr.Xoffset) / hdr.Xscalefactor)),
			int(round((y - hdr.Yoffset) / hdr.Yscalefactor)),
			int(round((z - hdr.Zoffset) / hdr.Zscalefactor)))

###############################################################################
def getpointflags(point):
	'''
	unpack the return number bitfield of a point.
	formats 0-5 pack it in 1 byte, format 6 in 2 bytes
	'''
	flags = point.flags
	if point.pointformat == 6:
		return {
			"returnnumber": flags & 0x0F,
			"numberreturns": (flags >> 4) & 0x0F,
			"classificationflags": (flags >> 8) & 0x0F,
			"scannerchannel": (flags >> 12) & 0x03,
			"scandirectionflag": (flags >> 14) & 0x01,
			"edgeflightline": (flags >> 15) & 0x01,
		}
	return {
		"returnnumber": flags & 0x07,
		"numberreturns": (flags >> 3) & 0x07,
		"scandirectionflag": (flags >> 6) & 0x01,
		"edgeflightline": (flags >> 7) & 0x01,
	}

###############################################################################
def setpointflags(point, returnnumber=1, numberreturns=1, scandirectionflag=0, edgeflightline=0, classificationflags=0, scannerchannel=0):
	'''
	pack the return number bitfield of a point and return it.
	classification flags and scanner channel only exist in format 6
	'''
	if point.pointformat == 6:
		flags = (returnnumber & 0x0F)
		flags |= (numberreturns & 0x0F) << 4
		flags |= (classificationflags & 0x0F) << 8
		flags |= (scannerchannel & 0x03) << 12
		flags |= (1 if scandirectionflag else 0) << 14
		flags |= (1 if edgeflightline else 0) << 15
	else:
		flags = (returnnumber & 0x07)
		flags |= (numberreturns & 0x07) << 3
		flags |= (1 if scandirectionflag else 0) << 6
		flags |= (1 if edgeflightline else 0) << 7
	point.flags = flags
	return flags

###############################################################################
def iteratevlrs(stream, hdr):
	'''
	lazily walk the variable length records which follow the header.
	yields (vlr, payload) where payload is a slice of the stream holding the record data.
	the payload is skipped, not decoded. see readvlrpayload()
	'''
	count = hdr.NumberofVariableLengthRecords
	schema = lasschema.vlrschema()
	end = stream.seek(0, os.SEEK_END)

	stream.seek(hdr.HeaderSize, 0)
	for i in range(count):
		try:
			vlr = lasvlr(schema=schema).read(stream)
		except TruncatedRead as e:
			raise TruncatedVlr(i, count) from e
		start = stream.tell()
		stop = start + vlr.RecordLengthAfterHeader
		if stop > end:
			raise TruncatedVlr(i, count)
		stream.seek(stop, 0)
		yield vlr, slice(start, stop)

###############################################################################
def readvlrpayload(stream, payload):
	'''read the payload bytes of a variable length record. the stream position is not disturbed'''
	curr = stream.tell()
	try:
		stream.seek(payload.start, 0)
		return lasio.readbytes(stream, payload.stop - payload.start)
	finally:
		stream.seek(curr, 0)

###############################################################################
def writevlr(stream, vlr, payload):
	'''write a variable length record header and its payload at the current stream position'''
	payload = bytes(payload)
	vlr.RecordLengthAfterHeader = len(payload)
	vlr.write(stream)
	stream.write(payload)

###############################################################################
class lasreader:
	def __init__(self, filename):
		self.fileName = filename
		self.fileSize = os.path.getsize(filename)
		self.fileptr = open(filename, 'rb')
		self.hdr = None

	def __enter__(self):
		return self

	def __exit__(self, exc_type, exc_value, traceback):
		self.close()

	############################################################################
	def __str__(self):
		'''
		pretty print this class
		'''
		return pprint.pformat(vars(self))

	############################################################################
	def close(self):
		'''
		close the file
		'''
		self.fileptr.close()

	############################################################################
	def rewind(self):
		'''
		go back to start of file
		'''
		self.fileptr.seek(0, 0)

	############################################################################
	def seekPointRecordStart(self):
		'''
		set the file pointer to the START of the points block
		'''
		self.fileptr.seek(self.header().Offsettopointdata, 0)

	############################################################################
	def issignaturevalid(self):
		return checksignature(self.fileptr)

	############################################################################
	def readhdr(self):
		'''
		read the las file header from disc
		'''
		self.hdr = readheader(self.fileptr)
		return self.hdr

	def header(self):
		if self.hdr is None:
			self.readhdr()
		return self.hdr

	############################################################################
	def readvlrs(self):
		'''lazily walk the variable length records, yielding (vlr, payload slice)'''
		return iteratevlrs(self.fileptr, self.header())

	def readvlrpayload(self, payload):
		return readvlrpayload(self.fileptr, payload)

	############################################################################
	def points(self, start=0):
		'''lazily decode the point records'''
		return iteratepoints(self.fileptr, self.header(), start)

	############################################################################
	def readxyz(self):
		'''
		read all the points into a numpy array of real world x, y, z
		'''
		hdr = self.header()
		xyz = np.zeros((pointcount(hdr), 3), dtype=np.float64)
		for idx, point in enumerate(self.points()):
			xyz[idx] = (point.x, point.y, point.z)
		xyz *= (hdr.Xscalefactor, hdr.Yscalefactor, hdr.Zscalefactor)
		xyz += (hdr.Xoffset, hdr.Yoffset, hdr.Zoffset)
		return xyz

###############################################################################
class laswriter:
	'''
	write a las file. the header is written as a placeholder when the file is opened
	and rewritten on close once the point counts and bounding box are known.
	variable length records must be written before any points.
	'''
	def __init__(self, filename, versionmajor=1, versionminor=4, pointformat=1):
		self.fileName = filename
		self.hdr = lashdr(versionmajor, versionminor, pointformat)
		self.schema = lasschema.pointschema(pointformat)
		# format 6 has no legacy point count, so it needs the 64 bit count of 1.4
		if pointformat >= 6 and (versionmajor, versionminor) < (1, 4):
			raise ValueError("point format %d needs las 1.4, not %d.%d" % (pointformat, versionmajor, versionminor))

		self.pointsWritten = 0
		self.returncounts = [0] * 15
		self.mins = [math.inf] * 3
		self.maxs = [-math.inf] * 3

		self.fileptr = open(filename, 'wb+')
		writeheader(self.fileptr, self.hdr)

	def __enter__(self):
		return self

	def __exit__(self, exc_type, exc_value, traceback):
		self.close()

	############################################################################
	def newpoint(self):
		'''an empty point of the format this file is written in'''
		return laspoint(self.hdr.PointDataRecordFormat, self.schema)

	############################################################################
	def writeVLR(self, vlr, payload):
		'''
		write a variable length record directly after the header or the previous record
		'''
		if self.pointsWritten > 0:
			raise ValueError("variable length records must be written before any points")
		writevlr(self.fileptr, vlr, payload)
		self.hdr.NumberofVariableLengthRecords += 1
		self.hdr.Offsettopointdata = self.fileptr.tell()

	############################################################################
	def writeVLR_WKT(self, wkt):
		'''
		compose and write a standard variable length record for the WKT from pyproj or rasterio
		'''
		vlr = lasvlr(userid='LASF_Projection', recordid=2112, description='WKT OGC COORDINATE SYSTEM')
		self.writeVLR(vlr, wkt.encode('utf-8') + b'\0')
		# global encoding bit 4 tells readers the CRS is WKT
		if self.hdr.VersionMinor >= 4:
			self.hdr.GlobalEncoding |= 16

	############################################################################
	def writepoint(self, point):
		'''write a point and keep the counts and bounding box up to date'''
		writepoint(self.fileptr, self.hdr, point)
		self.pointsWritten += 1

		returnnumber = getpointflags(point)["returnnumber"]
		if 1 <= returnnumber <= 15:
			self.returncounts[returnnumber - 1] += 1

		for idx, value in enumerate(scalexyz(point, self.hdr)):
			self.mins[idx] = min(self.mins[idx], value)
			self.maxs[idx] = max(self.maxs[idx], value)

	############################################################################
	def writepointlist(self, x, y, z):
		'''write real world coordinates as single return points'''
		x = np.asarray(x, dtype=np.float64)
		y = np.asarray(y, dtype=np.float64)
		z = np.asarray(z, dtype=np.float64)
		if len(x) == 0:
			return
		self.computebbox_offsets(x, y, z)
		for i in range(len(x)):
			point = self.newpoint()
			point.x, point.y, point.z = unscalexyz(self.hdr, x[i], y[i], z[i])
			setpointflags(point, returnnumber=1, numberreturns=1)
			self.writepoint(point)

	############################################################################
	def computebbox_offsets(self, x, y, z, rounding=3):
		'''
		compute the offsets and scale factors so the coordinates fit the scaled integers.
		must be called before any points are written
		'''
		if self.pointsWritten > 0:
			raise ValueError("offsets must be computed before any points are written")
		self.hdr.Xoffset = round_down(np.min(x), rounding)
		self.hdr.Yoffset = round_down(np.min(y), rounding)
		self.hdr.Zoffset = round_down(np.min(z), rounding)

		self.hdr.Xscalefactor = 10**-(rounding)
		self.hdr.Yscalefactor = 10**-(rounding)
		self.hdr.Zscalefactor = 10**-(rounding)

	############################################################################
	def updateheader(self):
		'''
		put the point counts and the bounding box into the header
		'''
		hdr = self.hdr
		n = self.pointsWritten
		if hdr.VersionMinor >= 4:
			hdr.Numberofpointrecords = n
			hdr.Numberofpointsbyreturn = list(self.returncounts)

		# formats 6 and above have no legacy counts
		if hdr.PointDataRecordFormat < 6 and n <= 0xFFFFFFFF:
			hdr.LegacyNumberofpointrecords = n
			hdr.LegacyNumberofpointsbyreturn = [min(c, 0xFFFFFFFF) for c in self.returncounts[:5]]
		else:
			hdr.LegacyNumberofpointrecords = 0
			hdr.LegacyNumberofpointsbyreturn = [0] * 5

		if n > 0:
			hdr.MinX, hdr.MinY, hdr.MinZ = self.mins
			hdr.MaxX, hdr.MaxY, hdr.MaxZ = self.maxs

	############################################################################
	def close(self):
		'''
		we need to write the header after writing records so we can update the bounding box, point counts etc
		'''
		if self.fileptr.closed:
			return
		try:
			self.updateheader()
			writeheader(self.fileptr, self.hdr)
			logger.debug("wrote %d points to %s", self.pointsWritten, self.fileName)
		finally:
			self.fileptr.close()

############################################################################
def round_down(n, decimals=0):
	multiplier = 10 ** decimals
	return math.floor(n * multiplier) / multiplier

###############################################################################
def createOutputFileName(path):
	'''Create a valid output filename. if the name of the file already exists the file name is auto-incremented.'''
	path	  = os.path.expanduser(path)

	if os.path.dirname(path) and not os.path.exists(os.path.dirname(path)):
		os.makedirs(os.path.dirname(path))

	if not os.path.exists(path):
		return path

	root, ext = os.path.splitext(os.path.expanduser(path))
	dir	   = os.path.dirname(root) or "."
	fname	 = os.path.basename(root)
	candidate = fname+ext
	index	 = 1
	ls		= set(os.listdir(dir))
	while candidate in ls:
			candidate = "{}_{}{}".format(fname,index,ext)
			index	+= 1

	return os.path.join(dir, candidate)
