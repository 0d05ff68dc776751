import sys
import os
import argparse
import lark

from wsdiag import WSError, WSSyntaxError, WSLiteralOverflow, WSContext, err, printErrors
from wsparse import Instruction, OPCODES, NUMBER_OPS, LABEL_OPS, LITERAL_BITS
from wsc import stageFile

def checkArgs():
	argparser = argparse.ArgumentParser(description="Assemble disassembler mnemonics back into Whitespace source.")
	argparser.add_argument("infile", help="Source file to read mnemonics from.")
	argparser.add_argument("-o", "--outfile", default=os.path.join(os.getcwd(), "a.ws"), help="Write Whitespace source to OUTFILE. Default is \"a.ws\".")
	argparser.add_argument("-w", "--warning-level", default = 1, type = int, help="Stop assembly process if a warning is encountered, as if an error had occurred. Levels increase from 1 (errors only) to 3 (info, warnings, and errors).")
	argparser.add_argument("-v", "--verbose", action = "count", default = 1, help = "Specify once to show messages from warnings and twice to show messages from info.")

	result = argparser.parse_args()

	result.warning_level = min(max(result.warning_level, 1), 3) - 1
	result.verbose = min(result.verbose, 3) - 1

	result.infile = os.path.abspath(result.infile)
	result.outfile = os.path.abspath(result.outfile)
	return result

def createParser():
	myGrammar = GRAMMAR + "KEYWORD.1: "
	for keyw in OPCODES:
		myGrammar += "\"" + keyw + "\"i | "
	myGrammar = myGrammar[0:-3]

	return lark.Lark(grammar = myGrammar, start = "head", propagate_positions = True, parser = "lalr", lexer = "contextual")

def getFormat(keyw):
	if keyw in NUMBER_OPS:
		return "integer"
	if keyw in LABEL_OPS:
		return "label"
	return None

def verifyInstruction(ctxt, inst):
	keyw = inst.children[0]
	args = inst.children[1:]
	fmt = getFormat(keyw.value)

	if fmt is None and args:
		raise WSSyntaxError("\"" + keyw + "\" takes no argument, but \"" + args[0].data + "\" was given.", ctxt.file, args[0].meta.line, args[0].meta.column, 0)
	if fmt == "integer" and not args:
		raise WSSyntaxError("\"" + keyw + "\" requires an integer argument.", ctxt.file, keyw.line, keyw.column, 0)
	if fmt is not None and args and args[0].data != fmt:
		raise WSSyntaxError("Argument of \"" + keyw + "\" must be of type \"" + fmt + "\", but \"" + args[0].data + "\" was given.", ctxt.file, args[0].meta.line, args[0].meta.column, 0)
	if fmt == "label" and not args:
		err(ctxt, WSError("\"" + keyw + "\" has no label; the empty label is used.", ctxt.file, keyw.line, keyw.column, 2))

def encodeNumber(value, ctxt = None, line = -1, col = -1):
	bits = bin(abs(value))[2:] if value else ""
	if len(bits) + 1 > LITERAL_BITS:
		raise WSLiteralOverflow("Number " + str(value) + " does not fit in " + str(LITERAL_BITS - 1) + " magnitude bits.", ctxt.file if ctxt else "<input>", line, col, 0)
	sign = "\t" if value < 0 else " "
	return sign + bits.replace("0", " ").replace("1", "\t")

def encodeLabel(text):
	return text.lower().replace("s", " ").replace("t", "\t")

def assemble(text, ctxt):
	parser = createParser()
	text = text + "\n"
	try:
		tree = parser.parse(text)
	except lark.exceptions.UnexpectedInput as e:
		raise WSSyntaxError("Syntax error.\n" + e.get_context(text)[0:-1], ctxt.file, e.line, e.column, 0) from None

	Normalizer().visit(tree)

	result = []
	for stmt in tree.children:
		if not stmt.children:
			continue
		inst = stmt.children[0]
		verifyInstruction(ctxt, inst)

		keyw = inst.children[0]
		param = None
		if len(inst.children) > 1:
			arg = inst.children[1]
			token = arg.children[0]
			match arg.data:
				case "integer":
					param = encodeNumber(int(token.value), ctxt, token.line, token.column)
				case "label":
					param = encodeLabel(token.value)
		elif keyw.value in LABEL_OPS:
			param = ""
		result.append(Instruction(keyw.value, param, keyw.line))
	return result

def encode(instructions):
	out = []
	for inst in instructions:
		out.append(ENCODING[inst.op])
		if inst.param is not None:
			out.append(inst.param + "\n")
	return "".join(out).encode("ascii")

def getContents(path):
	try:
		with open(path, "r") as infile:
			return infile.read()
	except (FileNotFoundError, PermissionError, OSError):
		raise WSError("Could not read file \"" + path + "\".", "stdin", -1, -1, 0) from None

def main():
	arglist = checkArgs()
	myCtxt = WSContext(arglist.warning_level, arglist.verbose, arglist.infile)
	try:
		instructions = assemble(getContents(arglist.infile), myCtxt)
		stageFile(arglist.outfile, encode(instructions))
		print("Assembly succeeded with 0 errors.")
	except WSError as e:
		printErrors(e)
		sys.exit(1)

###############################

ENCODING = dict([
	("push", "  "), ("dup", " \n "), ("swap", " \n\t"), ("pop", " \n\n"),
	("add", "\t   "), ("sub", "\t  \t"), ("mul", "\t  \n"), ("div", "\t \t "), ("mod", "\t \t\t"),
	("sth", "\t\t "), ("ldh", "\t\t\t"),
	("mrk", "\n  "), ("call", "\n \t"), ("jmp", "\n \n"), ("jz", "\n\t "), ("jlz", "\n\t\t"), ("ret", "\n\t\n"), ("end", "\n\n\n"),
	("wrc", "\t\n  "), ("wri", "\t\n \t"), ("rdc", "\t\n\t "), ("rdi", "\t\n\t\t")
])

GRAMMAR = """head: statement*

statement: instruction? _COMMENT? _NEWLINE

instruction: KEYWORD argument?

argument: SIGNED_INT -> integer
        | LABEL -> label

SIGNED_INT: /[+-]?[0-9]+/
LABEL: /[stST]+/

_COMMENT: /;[^\\n]*/
_NEWLINE: "\\r"? "\\n"
WHITESPACE: " " | "\\t" | "\\v" | "\\f"
%ignore WHITESPACE

"""

###############################

class Normalizer(lark.visitors.Visitor_Recursive):
	def instruction(self, x):
		x.children[0] = x.children[0].update(value = x.children[0].value.lower())

	def label(self, x):
		x.children[0] = x.children[0].update(value = x.children[0].value.lower())

if __name__ == "__main__":
	main()
