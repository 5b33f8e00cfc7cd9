#name:			lasio
#created:		July 2017
#by:			p.kennedy@guardiangeomatics.com
#description:	primitive little-endian binary reads and writes used by the las codec

# All data in a LAS file are little-endian.
# Integers are 1 to 8 bytes, floats are IEEE-754 binary32 or binary64,
# strings are fixed length and padded with nulls.

import struct

from laserrors import TruncatedRead

FLOATFORMATS = {4: "<f", 8: "<d"}

############################################################################
def readbytes(stream, count):
	'''read exactly count bytes from the stream or raise TruncatedRead'''
	data = stream.read(count)
	if len(data) != count:
		raise TruncatedRead(count, len(data))
	return data

############################################################################
def packuint(value, length, signed=False):
	'''pack an integer into length little-endian bytes'''
	return int(value).to_bytes(length, "little", signed=signed)

############################################################################
def unpackuint(data, signed=False):
	return int.from_bytes(data, "little", signed=signed)

############################################################################
def readuint(stream, length, signed=False):
	'''read an unsigned (or signed) little-endian integer of 1 to 8 bytes'''
	return unpackuint(readbytes(stream, length), signed)

############################################################################
def writeuint(stream, length, value, signed=False):
	stream.write(packuint(value, length, signed))

############################################################################
def fitstring(s, length):
	'''
	fit a string into exactly length bytes.
	longer strings are truncated, shorter strings are padded with nulls.
	'''
	if isinstance(s, str):
		s = s.encode("latin-1", "replace")
	s = bytes(s[:length])
	return s + b"\0" * (length - len(s))

############################################################################
def readstring(stream, length):
	'''read length raw bytes as text. nulls are data, the caller trims them'''
	return readbytes(stream, length).decode("latin-1")

############################################################################
def writestring(stream, length, s):
	stream.write(fitstring(s, length))

############################################################################
def packfloat(value, length=8):
	'''pack an IEEE-754 float of 4 or 8 bytes'''
	return struct.pack(FLOATFORMATS[length], value)

############################################################################
def unpackfloat(data):
	return struct.unpack(FLOATFORMATS[len(data)], data)[0]

############################################################################
def readfloat(stream, length=8):
	return unpackfloat(readbytes(stream, length))

############################################################################
def writefloat(stream, length, value):
	stream.write(packfloat(value, length))
