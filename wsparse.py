from collections import namedtuple

from wsdiag import WSSyntaxError, WSUnexpectedEOF, WSLiteralOverflow, WSError, ERROR, WARNING, err, labelText

SPACE = 0x20
TAB = 0x09
LF = 0x0A
EOF = 0

# longest number literal, sign bit included
LITERAL_BITS = 31

OPCODES = [
	"push", "dup", "swap", "pop",
	"add", "sub", "mul", "div", "mod",
	"sth", "ldh",
	"mrk", "call", "jmp", "jz", "jlz", "ret", "end",
	"wrc", "wri", "rdc", "rdi"
]
NUMBER_OPS = ("push",)
LABEL_OPS = ("mrk", "call", "jmp", "jz", "jlz")

Instruction = namedtuple("Instruction", ["op", "param", "line"], defaults=[None, -1])

class WSProgram:
	def __init__(self):
		self.instructions = []
		self.targets = dict()

class Tokenizer:
	def __init__(self, data):
		self.data = data
		self.pos = 0
		self.line = 1

	def next(self):
		while self.pos < len(self.data):
			c = self.data[self.pos]
			self.pos += 1
			match c:
				case 0x20 | 0x09:
					return c
				case 0x0A:
					self.line += 1
					return c
		return EOF

def parseNumber(literal, filename = "<input>", line = -1):
	if len(literal) > LITERAL_BITS:
		raise WSLiteralOverflow("Number literal uses " + str(len(literal) - 1) + " magnitude bits, at most " + str(LITERAL_BITS - 1) + " allowed.", filename, line, -1, ERROR)

	value = 0
	for bit in literal[1:]:
		value = (value << 1) + (0 if bit == " " else 1)

	if literal[:1] == "\t":
		return -value
	return value

class Parser:
	def __init__(self, tok, ctxt):
		self.tok = tok
		self.ctxt = ctxt
		self.line = 1

	def fail(self, t, what):
		if t == EOF:
			raise WSUnexpectedEOF("Unexpected end of input in " + what + ".", self.ctxt.file, self.tok.line, -1, ERROR)
		raise WSSyntaxError("Wrong " + what + ".", self.ctxt.file, self.tok.line, -1, ERROR)

	def parseLiteral(self):
		chars = []
		while True:
			t = self.tok.next()
			if t == LF:
				return "".join(chars)
			if t == EOF:
				raise WSUnexpectedEOF("Unexpected end of input inside a literal.", self.ctxt.file, self.tok.line, -1, ERROR)
			chars.append(" " if t == SPACE else "\t")

	def add(self, p, op, param = None):
		p.instructions.append(Instruction(op, param, self.line))

	def parseStack(self, p):
		t = self.tok.next()
		match t:
			case 0x20:
				self.add(p, "push", self.parseLiteral())
			case 0x0A:
				t = self.tok.next()
				match t:
					case 0x20:
						self.add(p, "dup")
					case 0x09:
						self.add(p, "swap")
					case 0x0A:
						self.add(p, "pop")
					case _:
						self.fail(t, "stack operation")
			case _:
				self.fail(t, "stack operation")

	def parseArithmetic(self, p):
		first = self.tok.next()
		if first == EOF or first == LF:
			self.fail(first, "arithmetic operation")
		second = self.tok.next()
		match (first, second):
			case (0x20, 0x20):
				self.add(p, "add")
			case (0x20, 0x09):
				self.add(p, "sub")
			case (0x20, 0x0A):
				self.add(p, "mul")
			case (0x09, 0x20):
				self.add(p, "div")
			case (0x09, 0x09):
				self.add(p, "mod")
			case _:
				self.fail(second, "arithmetic operation")

	def parseHeap(self, p):
		t = self.tok.next()
		match t:
			case 0x20:
				self.add(p, "sth")
			case 0x09:
				self.add(p, "ldh")
			case _:
				self.fail(t, "heap operation")

	def parseIO(self, p):
		first = self.tok.next()
		if first == EOF or first == LF:
			self.fail(first, "I/O operation")
		second = self.tok.next()
		match (first, second):
			case (0x20, 0x20):
				self.add(p, "wrc")
			case (0x20, 0x09):
				self.add(p, "wri")
			case (0x09, 0x20):
				self.add(p, "rdc")
			case (0x09, 0x09):
				self.add(p, "rdi")
			case _:
				self.fail(second, "I/O operation")

	def parseControlFlow(self, p):
		first = self.tok.next()
		if first == EOF:
			self.fail(first, "control flow operation")
		second = self.tok.next()
		match (first, second):
			case (0x20, 0x20):
				self.mark(p, self.parseLiteral())
			case (0x20, 0x09):
				self.add(p, "call", self.parseLiteral())
			case (0x20, 0x0A):
				self.add(p, "jmp", self.parseLiteral())
			case (0x09, 0x20):
				self.add(p, "jz", self.parseLiteral())
			case (0x09, 0x09):
				self.add(p, "jlz", self.parseLiteral())
			case (0x09, 0x0A):
				self.add(p, "ret")
			case (0x0A, 0x0A):
				self.add(p, "end")
			case _:
				self.fail(second, "control flow operation")

	def mark(self, p, label):
		if label in p.targets:
			err(self.ctxt, WSError("Label \"" + labelText(label) + "\" is marked more than once; the last mark wins.", self.ctxt.file, self.tok.line, -1, WARNING))
		p.targets[label] = len(p.instructions)
		self.add(p, "mrk", label)

	def parse(self, p):
		while True:
			self.line = self.tok.line
			match self.tok.next():
				case 0x20:
					self.parseStack(p)
				case 0x0A:
					self.parseControlFlow(p)
				case 0x09:
					t = self.tok.next()
					match t:
						case 0x20:
							self.parseArithmetic(p)
						case 0x09:
							self.parseHeap(p)
						case 0x0A:
							self.parseIO(p)
						case _:
							self.fail(t, "instruction")
				case _:
					return p

def parseSource(data, ctxt):
	p = WSProgram()
	Parser(Tokenizer(data), ctxt).parse(p)
	return p
