import sys
import os
import argparse

from wsdiag import WSError, WSContext, printErrors, labelText
from wsparse import parseSource, parseNumber, NUMBER_OPS, LABEL_OPS
from wsc import getContents

def formatInstruction(instr, filename = "<input>"):
	if not instr.param and instr.op not in NUMBER_OPS:
		return instr.op
	if instr.op in LABEL_OPS:
		return instr.op + " " + labelText(instr.param)
	if instr.op in NUMBER_OPS:
		return instr.op + " " + str(parseNumber(instr.param, filename, instr.line))
	return instr.op

def disassemble(data, ctxt):
	prg = parseSource(data, ctxt)
	return [formatInstruction(instr, ctxt.file) for instr in prg.instructions]

def checkArgs():
	argparser = argparse.ArgumentParser(description="Print one readable line per Whitespace instruction.")
	argparser.add_argument("infile", help="Source file to read Whitespace instructions from.")

	result = argparser.parse_args()
	result.infile = os.path.abspath(result.infile)
	return result

def main():
	arglist = checkArgs()
	try:
		for line in disassemble(getContents(arglist.infile), WSContext(0, 0, arglist.infile)):
			print(line)
	except WSError as e:
		printErrors(e)
		sys.exit(1)

if __name__ == "__main__":
	main()
