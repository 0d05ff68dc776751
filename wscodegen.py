from wsdiag import WSError, WSUndefinedLabel, WARNING, INFO, err, labelText
from wsparse import parseNumber

BRANCH_OPS = ("JUMP", "JUMP_IF_ZERO", "JUMP_IF_NEG")

# operands an opcode consumes, and its net effect on the stack height
STACK_NEEDS = dict([
	("dup", 1), ("swap", 2), ("pop", 1),
	("add", 2), ("sub", 2), ("mul", 2), ("div", 2), ("mod", 2),
	("sth", 2), ("ldh", 1), ("jz", 1), ("jlz", 1),
	("wrc", 1), ("wri", 1), ("rdc", 1), ("rdi", 1)
])
STACK_DELTA = dict([
	("push", 1), ("dup", 1), ("swap", 0), ("pop", -1),
	("add", -1), ("sub", -1), ("mul", -1), ("div", -1), ("mod", -1),
	("sth", -2), ("ldh", 0), ("jz", -1), ("jlz", -1),
	("wrc", -1), ("wri", -1), ("rdc", -1), ("rdi", -1)
])

SIMPLE_OPS = dict([
	("dup", "DUP"), ("swap", "SWAP"), ("pop", "POP"),
	("add", "ADD"), ("sub", "SUB"), ("mul", "MUL"), ("div", "DIV"), ("mod", "MOD"),
	("sth", "STORE"), ("ldh", "LOAD"),
	("wrc", "WRITE_CHAR"), ("wri", "WRITE_NUM"), ("rdc", "READ_CHAR"), ("rdi", "READ_NUM"),
	("end", "HALT")
])

class Bytecode:
	def __init__(self):
		self.instructions = []   # list of (OPCODE, arg)
		self.lines = []          # source line per instruction

	def emit(self, opcode, arg=None, line=-1):
		self.instructions.append((opcode, arg))
		self.lines.append(line)
		return len(self.instructions) - 1

	def patch(self, index, arg):
		opcode, _ = self.instructions[index]
		self.instructions[index] = (opcode, arg)

class Generator:
	def __init__(self, ctxt):
		self.ctxt = ctxt
		self.bc = Bytecode()
		self.labels = dict()
		self.definedLabels = dict()
		self.targets = []
		self.retTgt = []
		self.subret = self.newTarget()
		self.usesReturn = False
		self.stackHeight = 0

	def newTarget(self):
		self.targets.append(None)
		return len(self.targets) - 1

	def markTarget(self, t):
		self.targets[t] = len(self.bc.instructions)

	def parseLabel(self, s, defined):
		if s not in self.labels:
			self.labels[s] = self.newTarget()
			self.definedLabels[s] = False

		if defined:
			self.definedLabels[s] = True

		return self.labels[s]

	def trackStack(self, instr):
		if self.stackHeight is not None:
			need = STACK_NEEDS.get(instr.op, 0)
			if self.stackHeight < need:
				err(self.ctxt, WSError("\"" + instr.op + "\" needs " + str(need) + " operands but only " + str(self.stackHeight) + " are on the stack here.", self.ctxt.file, instr.line, -1, WARNING))
				self.stackHeight = None
				return
			self.stackHeight += STACK_DELTA.get(instr.op, 0)

	def generate(self, program):
		bc = self.bc
		for instr in program.instructions:
			self.trackStack(instr)
			match instr.op:
				case "push":
					bc.emit("PUSH", parseNumber(instr.param, self.ctxt.file, instr.line), instr.line)
				case "mrk":
					self.markTarget(self.parseLabel(instr.param, True))
					self.stackHeight = None
				case "call":
					bc.emit("PUSH_RET", len(self.retTgt), instr.line)
					bc.emit("JUMP", self.parseLabel(instr.param, False), instr.line)
					l = self.newTarget()
					self.retTgt.append(l)
					self.markTarget(l)
					self.usesReturn = True
					self.stackHeight = None
				case "jmp":
					bc.emit("JUMP", self.parseLabel(instr.param, False), instr.line)
					self.stackHeight = None
				case "jz":
					bc.emit("JUMP_IF_ZERO", self.parseLabel(instr.param, False), instr.line)
				case "jlz":
					bc.emit("JUMP_IF_NEG", self.parseLabel(instr.param, False), instr.line)
				case "ret":
					bc.emit("JUMP", self.subret, instr.line)
					self.usesReturn = True
					self.stackHeight = None
				case "end":
					bc.emit("HALT", None, instr.line)
					self.stackHeight = 0
				case _:
					bc.emit(SIMPLE_OPS[instr.op], None, instr.line)

		bc.emit("HALT")

		if self.usesReturn:
			self.markTarget(self.subret)
			bc.emit("DISPATCH", tuple(self.retTgt))

		err(self.ctxt, WSError("Generated " + str(len(bc.instructions)) + " bytecode instructions, " + str(len(self.labels)) + " labels, " + str(len(self.retTgt)) + " return sites.", self.ctxt.file, -1, -1, INFO))
		return bc

def verifyLabels(gen):
	for label, defined in gen.definedLabels.items():
		if not defined:
			raise WSUndefinedLabel(labelText(label), gen.ctxt.file)

def link(gen):
	bc = gen.bc
	for i, (opcode, arg) in enumerate(bc.instructions):
		if opcode in BRANCH_OPS:
			bc.patch(i, gen.targets[arg])
		elif opcode == "DISPATCH":
			bc.patch(i, tuple(gen.targets[t] for t in arg))
	return bc
