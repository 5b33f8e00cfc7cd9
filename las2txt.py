#name:		  	las2txt
#created:		July 2017
#by:			p.kennedy@guardiangeomatics.com
#description:   python module to report the header and variable length records of an ASPRS LAS file and convert its points to a delimited text file

#requirements
# python 3.8 or newer
# pip install numpy
# pip install pyproj

#done##########################################
# check the file signature so we do not try to decode something which is not a las file
# print the header in file order
# print the variable length records with a separator
# report the EPSG code of a WKT variable length record
# convert points to text, one line per point, fields in point record order
# optionally write real world x,y,z instead of the raw scaled integers
# stream the points in chunks so memory is bounded for large files
# remove the partial text file if the conversion fails

import os.path
from argparse import ArgumentParser
import math
import sys
import time
import logging

import numpy as np
from pyproj import CRS
from pyproj.exceptions import CRSError

# locals
import pylasfile
from laserrors import LASError

###########################################################################
def main(argv=None):

	parser = ArgumentParser(description='Read an ASPRS LAS file, report the header and variable length records and convert the points to a delimited text file.')
	parser.add_argument('-i', 		action='store',			default="", 		dest='inputfile', 		help='(required) Input LAS filename to process.')
	parser.add_argument('-o', 		action='store', 		default="",			dest='outputfile', 		help='(optional) Output text filename. If specified the points are converted to text. e.g. -o points.txt')
	parser.add_argument('-totext', 	action='store_true', 	default=False,		dest='totext',			help='(optional) Convert the points to a text file alongside the input file, auto-incrementing the name if it exists. [Default:false]')
	parser.add_argument('-d', 		action='store', 		default=",",		dest='delimiter', 		help='(optional) Delimiter between fields in the text file. [Default:,]')
	parser.add_argument('-scaled', 	action='store_true', 	default=False,		dest='scaled',			help='(optional) Write real world x,y,z using the header scale and offset instead of the raw integers. [Default:false]')
	parser.add_argument('-check', 	action='store_true', 	default=False,		dest='check',			help='(optional) Only check the file signature. exit code 0 if this is a LAS file. [Default:false]')
	parser.add_argument('-header', 	action='store_true', 	default=False,		dest='header',			help='(optional) Print all the header fields in file order. [Default:false]')
	parser.add_argument('-vlrs', 	action='store_true', 	default=False,		dest='vlrs',			help='(optional) Print the variable length records. [Default:false]')
	parser.add_argument('-log', 	action='store', 		default="",			dest='logfile', 		help='(optional) Log filename. [Default:<nothing>]')

	args = parser.parse_args(argv)

	if len(args.logfile) > 0:
		logging.basicConfig(filename = args.logfile, level=logging.INFO)

	if not os.path.isfile(args.inputfile):
		log("oops, file not found: %s" % (args.inputfile), error=True)
		return 1

	if args.check:
		islas = checksignature(args.inputfile)
		log("%s is %sa LAS file" % (args.inputfile, "" if islas else "not "))
		return 0 if islas else 1

	if args.totext and len(args.outputfile) == 0:
		args.outputfile = pylasfile.createOutputFileName(os.path.splitext(args.inputfile)[0] + ".txt")

	# with no options, behave like a quick look at the file
	if not (args.header or args.vlrs or args.outputfile):
		args.header = True

	try:
		process(args)
	except (LASError, OSError) as e:
		log("%s: %s: %s" % (e.__class__.__name__, args.inputfile, e), error=True)
		return 1
	return 0

###############################################################################
def process(args):
	if args.header:
		print(headertext(args.inputfile))
	if args.vlrs:
		print(vlrtext(args.inputfile))
	if len(args.outputfile) > 0:
		start_time = time.time() # time the process so we can keep it quick
		count = converttotext(args.inputfile, args.outputfile, delimiter=args.delimiter, scaled=args.scaled)
		log("Points written: %s to %s" % (f'{count:,}', args.outputfile))
		log("Conversion Duration: %.3fs" % (time.time() - start_time))

###############################################################################
def checksignature(filename):
	'''return True if the file starts with the LASF signature'''
	with open(filename, 'rb') as f:
		return pylasfile.checksignature(f)

###############################################################################
def headertext(filename):
	'''all the decoded header fields, in the order they appear in the file'''
	with open(filename, 'rb') as f:
		hdr = pylasfile.readheader(f)
	return "\n".join("%s: %s" % (name, formatvalue(value)) for name, value in hdr.items())

###############################################################################
def vlrtext(filename, separator="-" * 60):
	'''each variable length record header followed by a separator, in file order'''
	lines = []
	with open(filename, 'rb') as f:
		hdr = pylasfile.readheader(f)
		for vlr, payload in pylasfile.iteratevlrs(f, hdr):
			lines.append(str(vlr))
			epsg = describecrs(vlr, pylasfile.readvlrpayload(f, payload))
			if epsg is not None:
				lines.append("EPSG: %d" % (epsg))
			lines.append(separator)
	return "\n".join(lines)

###############################################################################
def describecrs(vlr, payload):
	'''
	return the EPSG code of an OGC WKT coordinate system record, or None.
	only LASF_Projection record 2112 holds WKT
	'''
	if vlr.UserID.rstrip("\0") != "LASF_Projection" or vlr.RecordID != 2112:
		return None
	wkt = payload.decode("utf-8", "replace").rstrip("\0")
	try:
		return CRS.from_wkt(wkt).to_epsg()
	except CRSError:
		log("Unable to identify the coordinate system in the WKT record", error=True, printmsg=False)
		return None

###############################################################################
def formatvalue(value):
	if isinstance(value, str):
		return value.rstrip("\0")
	return str(value)

###############################################################################
def decimalsforscale(scale):
	'''the number of decimal places a scale factor resolves, 0.01 -> 2'''
	if scale <= 0 or scale >= 1:
		return 0
	return int(math.ceil(-math.log10(scale) - 1e-9))

###############################################################################
def converttotext(filename, outfilename, delimiter=",", scaled=False, chunksize=10000):
	'''
	write one line per point, fields in point record order, joined by the delimiter.
	returns the number of points written. the partial file is removed on failure
	'''
	count = 0
	with open(filename, 'rb') as f:
		# only a file this call created is removed on failure
		out = open(outfilename, 'w')
		try:
			with out:
				hdr = pylasfile.readheader(f)
				decimals = [decimalsforscale(s) for s in (hdr.Xscalefactor, hdr.Yscalefactor, hdr.Zscalefactor)]
				rows = []
				for point in pylasfile.iteratepoints(f, hdr):
					row = point.values()
					if scaled:
						row[0:3] = ["%.*f" % (d, v) for d, v in zip(decimals, pylasfile.scalexyz(point, hdr))]
					rows.append(row)
					if len(rows) == chunksize:
						count += writerows(out, rows, delimiter)
						rows = []
				count += writerows(out, rows, delimiter)
		except BaseException:
			os.remove(outfilename)
			raise
	return count

###############################################################################
def writerows(out, rows, delimiter):
	if len(rows) == 0:
		return 0
	np.savetxt(out, np.array(rows, dtype=object), fmt='%s', delimiter=delimiter, newline='\n')
	return len(rows)

###############################################################################
def	log(msg, error = False, printmsg=True):
		if printmsg:
			print (msg)
		if error == False:
			logging.info(msg)
		else:
			logging.error(msg)

###############################################################################
if __name__ == "__main__":
	sys.exit(main())
