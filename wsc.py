import sys
import os
import argparse
import pickle
import gzip
import tempfile

from wsdiag import WSError, WSContext, INFO, err, printErrors, labelText
from wsparse import parseSource
from wscodegen import Generator, verifyLabels, link

ARTIFACT_FORMAT = "wsc-bytecode-1"

def checkArgs():
	argparser = argparse.ArgumentParser(description="Compile a Whitespace program.")
	argparser.add_argument("infile", help="Source file to read Whitespace instructions from.")
	argparser.add_argument("-o", "--outfile", default=os.path.join(os.getcwd(), "a.out"), help="Write the compiled program to OUTFILE. Default is \"a.out\".")
	argparser.add_argument("-w", "--warning-level", default = 1, type = int, help="Stop compilation if a diagnostic of this level is encountered, as if an error had occurred. Levels increase from 1 (errors only) to 3 (info, warnings, and errors).")
	argparser.add_argument("-v", "--verbose", action = "count", default = 1, help = "Specify once to show messages from warnings and twice to show messages from info.")

	result = argparser.parse_args()

	if result.warning_level > 3:
		result.warning_level = 3
	if result.warning_level < 1:
		result.warning_level = 1
	result.warning_level -= 1

	if result.verbose > 3:
		result.verbose = 3
	result.verbose -= 1

	result.infile = os.path.abspath(result.infile)
	result.outfile = os.path.abspath(result.outfile)
	return result

def getContents(path):
	try:
		with open(path, "rb") as infile:
			return infile.read()
	except (FileNotFoundError, PermissionError, OSError):
		raise WSError("Could not read file \"" + path + "\".", "stdin", -1, -1, 0) from None

def compileSource(data, ctxt):
	prg = parseSource(data, ctxt)
	err(ctxt, WSError("Parsed " + str(len(prg.instructions)) + " instructions.", ctxt.file, -1, -1, INFO))

	gen = Generator(ctxt)
	gen.generate(prg)
	verifyLabels(gen)
	bc = link(gen)

	for label in prg.targets:
		err(ctxt, WSError("Label \"" + labelText(label) + "\" at bytecode address " + str(gen.targets[gen.labels[label]]) + ".", ctxt.file, -1, -1, INFO))

	return dict([ ("format", ARTIFACT_FORMAT), ("instructions", bc.instructions), ("lines", bc.lines), ("source", ctxt.file) ])

def compileFile(infile, ctxt):
	return compileSource(getContents(infile), ctxt)

def stageFile(outfile, data):
	outfile = os.path.abspath(outfile)
	staging = None
	try:
		fd, staging = tempfile.mkstemp(prefix=".wsc-", dir=os.path.dirname(outfile))
		with os.fdopen(fd, "wb") as fileObj:
			fileObj.write(data)
		mask = os.umask(0)
		os.umask(mask)
		os.chmod(staging, 0o666 & ~mask)
		os.replace(staging, outfile)
		staging = None
	except (FileNotFoundError, PermissionError, OSError):
		raise WSError("Could not write file " + outfile, "stdout", -1, -1, 0) from None
	finally:
		if staging is not None and os.path.exists(staging):
			os.remove(staging)

def output(outfile, artifact):
	stageFile(outfile, gzip.compress(pickle.dumps(artifact)))

def main():
	arglist = checkArgs()
	myCtxt = WSContext(arglist.warning_level, arglist.verbose, arglist.infile)
	try:
		artifact = compileFile(arglist.infile, myCtxt)
		output(arglist.outfile, artifact)
		print("Compilation succeeded with 0 errors.")
	except WSError as e:
		printErrors(e)
		sys.exit(1)

if __name__ == "__main__":
	main()
