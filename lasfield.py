#name:			lasfield
#created:		July 2017
#by:			p.kennedy@guardiangeomatics.com
#description:	field types used to describe the binary records of an ASPRS LAS file

# a record in a LAS file is an ordered list of fields. each field knows its
# name, how many bytes it occupies and how to decode and encode its value.
# the record codecs simply walk the list in order, so field order is the wire format.

import lasio

###############################################################################
class field:
	'''base class for all field kinds'''
	size = 0

	def __init__(self, name):
		self.name = name

	def __repr__(self):
		return "%s(%r, %d)" % (self.__class__.__name__, self.name, self.size)

	############################################################################
	def decode(self, stream):
		'''read exactly self.size bytes from the stream and return the value'''
		return self.unpack(lasio.readbytes(stream, self.size))

	############################################################################
	def encode(self, stream, value):
		'''write the value to the stream as exactly self.size bytes'''
		stream.write(self.pack(value))

	def default(self):
		raise NotImplementedError

	def pack(self, value):
		raise NotImplementedError

	def unpack(self, data):
		raise NotImplementedError

###############################################################################
class intfield(field):
	'''little-endian integer of 1 to 8 bytes'''
	def __init__(self, name, length, signed=False):
		super().__init__(name)
		if not 1 <= length <= 8:
			raise ValueError("integer fields are 1 to 8 bytes, not %d" % (length))
		self.size = length
		self.signed = signed

	def default(self):
		return 0

	def pack(self, value):
		return lasio.packuint(value, self.size, self.signed)

	def unpack(self, data):
		return lasio.unpackuint(data, self.signed)

###############################################################################
class floatfield(field):
	'''IEEE-754 float, 8 bytes for every header float, 4 bytes for the waveform block'''
	def __init__(self, name, length=8):
		super().__init__(name)
		if length not in lasio.FLOATFORMATS:
			raise ValueError("float fields are 4 or 8 bytes, not %d" % (length))
		self.size = length

	def default(self):
		return 0.0

	def pack(self, value):
		return lasio.packfloat(value, self.size)

	def unpack(self, data):
		return lasio.unpackfloat(data)

###############################################################################
class stringfield(field):
	'''fixed length string. decoded with any null padding intact'''
	def __init__(self, name, length):
		super().__init__(name)
		self.size = length

	def default(self):
		return ""

	def pack(self, value):
		return lasio.fitstring(value, self.size)

	def unpack(self, data):
		return data.decode("latin-1")

###############################################################################
class intlistfield(field):
	'''count consecutive integers of length bytes each'''
	def __init__(self, name, count, length):
		super().__init__(name)
		self.count = count
		self.element = intfield(name, length)
		self.size = count * length

	def __repr__(self):
		return "%s(%r, %d, %d)" % (self.__class__.__name__, self.name, self.count, self.element.size)

	def default(self):
		return [0] * self.count

	def pack(self, values):
		values = list(values)
		if len(values) != self.count:
			raise ValueError("field %s needs %d values, got %d" % (self.name, self.count, len(values)))
		return b"".join(self.element.pack(v) for v in values)

	def unpack(self, data):
		n = self.element.size
		return [self.element.unpack(data[i:i + n]) for i in range(0, self.size, n)]

###############################################################################
def schemasize(schema):
	'''the number of bytes a record described by schema occupies'''
	return sum(f.size for f in schema)
