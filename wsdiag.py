ERROR = 0
WARNING = 1
INFO = 2

class WSError(Exception):
	def __init__(self, message, f, l, c, level, child=None):
		super().__init__(message)
		self.msg = message
		self.file = f
		self.line = l
		self.col = c
		self.lvl = level
		self.child = child

	def __str__(self):
		return formatError(self)

class WSSyntaxError(WSError):
	pass

class WSUnexpectedEOF(WSError):
	pass

class WSLiteralOverflow(WSError):
	pass

class WSUndefinedLabel(WSError):
	def __init__(self, label, f):
		super().__init__("Label \"" + label + "\" is referenced but never marked.", f, -1, -1, ERROR)
		self.label = label

class WSRuntimeError(WSError):
	def __init__(self, message, ip, line, f = "<artifact>"):
		super().__init__(message, f, line, -1, ERROR)
		self.ip = ip

class WSContext:
	def __init__(self, warnings = 0, verbose = 0, filename = "<input>"):
		self.w = warnings
		self.v = verbose
		self.file = filename

def err(ctxt, e):
	if e.lvl <= ctxt.w:
		raise e
	if e.lvl <= ctxt.v:
		printErrors(e)

def formatError(e, lvl = 0):
	s = "  "*lvl

	match e.lvl:
		case 0:
			s += "ERROR"
		case 1:
			s += "WARNING"
		case 2:
			s += "INFO"

	s += " in " + e.file
	if e.line >= 0:
		s += ", line " + str(e.line)
	if e.col >= 0:
		s += ", column " + str(e.col)
	s += ":\n"
	if e.child:
		s += formatError(e.child, lvl+1)
	else:
		s += "  "*(lvl+1) + e.msg
	return s

def printErrors(e, lvl = 0):
	print(formatError(e, lvl))

def labelText(label):
	return label.replace(" ", "s").replace("\t", "t")
