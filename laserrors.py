#name:			laserrors
#created:		July 2017
#by:			p.kennedy@guardiangeomatics.com
#description:	exceptions raised while decoding and encoding ASPRS LAS files

###############################################################################
class LASError(Exception):
	'''base exception for all las codec errors'''

###############################################################################
class InvalidSignature(LASError):
	'''the first 4 bytes of the stream are not LASF'''
	def __init__(self, signature):
		self.signature = signature
		super().__init__("invalid file signature %r, expected b'LASF'" % (signature,))

###############################################################################
class UnsupportedVersion(LASError, ValueError):
	'''the header version is not one of 1.0 to 1.4'''
	def __init__(self, major, minor):
		self.major = major
		self.minor = minor
		super().__init__("unsupported las version %s.%s" % (major, minor))

###############################################################################
class UnsupportedPointFormat(LASError, ValueError):
	'''the point data record format is not one of 0 to 6'''
	def __init__(self, pointformat):
		self.pointformat = pointformat
		super().__init__("unsupported point data record format %s" % (pointformat))

###############################################################################
class TruncatedRead(LASError, EOFError):
	'''the stream ended before a field was complete'''
	def __init__(self, expected, actual):
		self.expected = expected
		self.actual = actual
		super().__init__("truncated read, expected %d bytes, got %d" % (expected, actual))

###############################################################################
class TruncatedVlr(LASError, EOFError):
	'''fewer variable length records in the stream than the header declares'''
	def __init__(self, index, count):
		self.index = index
		self.count = count
		super().__init__("variable length record %d of %d is truncated" % (index + 1, count))
