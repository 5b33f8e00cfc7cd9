#name:			lasschema
#created:		July 2017
#by:			p.kennedy@guardiangeomatics.com
#description:	field tables for the ASPRS LAS public header block, point data records and variable length records
#notes:			based on ASPRS LAS 1.0, 1.1, 1.2, 1.3 and 1.4-R13

# the tables here are exhaustive. each call returns a fresh list so callers cannot
# disturb the registry. sizes: header 1.0-1.2 = 227, 1.3 = 235, 1.4 = 375 bytes.
# point formats 0-6 = 20, 28, 26, 34, 57, 63, 30 bytes. vlr header = 54 bytes.

from laserrors import UnsupportedVersion, UnsupportedPointFormat
from lasfield import intfield, floatfield, stringfield, intlistfield, schemasize

SUPPORTEDVERSIONS = ((1, 0), (1, 1), (1, 2), (1, 3), (1, 4))
SUPPORTEDPOINTFORMATS = (0, 1, 2, 3, 4, 5, 6)

# byte offsets the version sniffer reads without decoding the whole header
VERSIONMAJOROFFSET = 24
VERSIONMINOROFFSET = 25
POINTFORMATOFFSET = 104

VLRHEADERSIZE = 54

############################################################################
def headerschema(major, minor):
	'''return the ordered list of public header block fields for a las version'''
	if (major, minor) not in SUPPORTEDVERSIONS:
		raise UnsupportedVersion(major, minor)

	schema = [stringfield("FileSignature", 4)]
	if minor == 0:
		schema.append(intfield("Reserved", 4))
	else:
		schema.append(intfield("FileSourceID", 2))
		schema.append(intfield("GlobalEncoding", 2))

	schema += [
		intfield("ProjectIDGUIDdata1", 4),
		intfield("ProjectIDGUIDdata2", 2),
		intfield("ProjectIDGUIDdata3", 2),
		intlistfield("ProjectIDGUIDdata4", 8, 1),
		intfield("VersionMajor", 1),
		intfield("VersionMinor", 1),
		stringfield("SystemIdentifier", 32),
		stringfield("GeneratingSoftware", 32),
		intfield("FileCreationDayofYear", 2),
		intfield("FileCreationYear", 2),
		intfield("HeaderSize", 2),
		intfield("Offsettopointdata", 4),
		intfield("NumberofVariableLengthRecords", 4),
		intfield("PointDataRecordFormat", 1),
		intfield("PointDataRecordLength", 2),
		intfield("LegacyNumberofpointrecords", 4),
		intlistfield("LegacyNumberofpointsbyreturn", 5, 4),
		floatfield("Xscalefactor"),
		floatfield("Yscalefactor"),
		floatfield("Zscalefactor"),
		floatfield("Xoffset"),
		floatfield("Yoffset"),
		floatfield("Zoffset"),
		floatfield("MaxX"),
		floatfield("MinX"),
		floatfield("MaxY"),
		floatfield("MinY"),
		floatfield("MaxZ"),
		floatfield("MinZ"),
	]

	if minor >= 3:
		schema.append(intfield("StartofWaveformDataPacketRecord", 8))
	if minor >= 4:
		schema += [
			intfield("StartoffirstExtendedVariableLengthRecord", 8),
			intfield("NumberofExtendedVariableLengthRecords", 4),
			intfield("Numberofpointrecords", 8),
			intlistfield("Numberofpointsbyreturn", 15, 8),
		]
	return schema

############################################################################
def pointschema(pointformat):
	'''return the ordered list of point data record fields for a point format'''
	if pointformat not in SUPPORTEDPOINTFORMATS:
		raise UnsupportedPointFormat(pointformat)

	schema = [
		intfield("x", 4, signed=True),
		intfield("y", 4, signed=True),
		intfield("z", 4, signed=True),
		intfield("intensity", 2),
	]

	if pointformat == 6:
		# return number, number of returns, classification flags, scanner channel,
		# scan direction and edge of flight line share 2 bytes
		schema += [
			intfield("flags", 2),
			intfield("classification", 1),
			intfield("userdata", 1),
			intfield("scanangle", 2, signed=True),
			intfield("pointsourceid", 2),
			floatfield("gpstime"),
		]
		return schema

	schema += [
		intfield("flags", 1),
		intfield("classification", 1),
		intfield("scananglerank", 1, signed=True),
		intfield("userdata", 1),
		intfield("pointsourceid", 2),
	]
	if pointformat in (1, 3, 4, 5):
		schema.append(floatfield("gpstime"))
	if pointformat in (2, 3, 5):
		schema += [
			intfield("red", 2),
			intfield("green", 2),
			intfield("blue", 2),
		]
	if pointformat in (4, 5):
		schema += [
			intfield("wavepacketdescriptorindex", 1),
			intfield("byteoffsettowaveformdata", 8),
			intfield("waveformpacketsize", 4),
			# the only 4 byte floats in the format. every header float is 8 bytes
			floatfield("returnpointwaveformlocation", 4),
			floatfield("wavex", 4),
			floatfield("wavey", 4),
			floatfield("wavez", 4),
		]
	return schema

############################################################################
def vlrschema():
	'''the variable length record header is the same for every las version'''
	return [
		intfield("Reserved", 2),
		stringfield("UserID", 16),
		intfield("RecordID", 2),
		intfield("RecordLengthAfterHeader", 2),
		stringfield("Description", 32),
	]

############################################################################
def headersize(major, minor):
	return schemasize(headerschema(major, minor))

############################################################################
def pointrecordlength(pointformat):
	return schemasize(pointschema(pointformat))
