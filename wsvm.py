import sys
import os
import argparse
import pickle
import gzip
import re

from wsdiag import WSError, WSRuntimeError, WSContext, printErrors
from wsc import ARTIFACT_FORMAT, compileFile

INT_MIN = -0x80000000
INT_MAX = 0x7FFFFFFF
NUMBER_INPUT = re.compile(r"[+-]?[0-9]+")

def wrap(value):
	value &= 0xFFFFFFFF
	if value & 0x80000000:
		return value - 0x100000000
	return value

def truncDiv(a, b):
	q = abs(a) // abs(b)
	if (a < 0) != (b < 0):
		q = -q
	return q

class VM:
	def __init__(self, artifact, inp=None, out=None, maxReturnDepth=1000000):
		self.instructions = artifact["instructions"]
		self.lines = artifact.get("lines", [-1] * len(self.instructions))
		self.file = artifact.get("source") or "<artifact>"
		self.inp = inp if inp is not None else sys.stdin
		self.out = out if out is not None else sys.stdout
		self.maxReturnDepth = maxReturnDepth

		self.ip = 0
		self.stack = []
		self.heap = None
		self.callstack = []
		self.halted = False

	def fault(self, message):
		ip = self.ip - 1
		line = self.lines[ip] if 0 <= ip < len(self.lines) else -1
		return WSRuntimeError(message + " (ip=" + str(ip) + ")", ip, line, self.file)

	def pop(self):
		if not self.stack:
			raise self.fault("Stack underflow.")
		return self.stack.pop()

	def getHeap(self):
		if self.heap is None:
			self.heap = dict()
		return self.heap

	def step(self):
		if self.ip >= len(self.instructions):
			self.halted = True
			return False

		opcode, arg = self.instructions[self.ip]
		self.ip += 1

		match opcode:
			case "PUSH":
				self.stack.append(wrap(arg))
			case "DUP":
				if not self.stack:
					raise self.fault("Stack underflow.")
				self.stack.append(self.stack[-1])
			case "SWAP":
				a = self.pop()
				b = self.pop()
				self.stack.append(a)
				self.stack.append(b)
			case "POP":
				self.pop()
			case "ADD" | "SUB" | "MUL" | "DIV" | "MOD":
				rhs = self.pop()
				lhs = self.pop()
				self.stack.append(wrap(self.arith(opcode, lhs, rhs)))
			case "STORE":
				value = self.pop()
				addr = self.pop()
				self.getHeap()[addr] = value
			case "LOAD":
				addr = self.pop()
				heap = self.getHeap()
				if addr not in heap:
					raise self.fault("Heap address " + str(addr) + " was never written.")
				self.stack.append(heap[addr])
			case "PUSH_RET":
				if len(self.callstack) >= self.maxReturnDepth:
					raise self.fault("Return stack overflow (more than " + str(self.maxReturnDepth) + " nested calls).")
				self.callstack.append(arg)
			case "JUMP":
				self.ip = arg
			case "JUMP_IF_ZERO":
				if self.pop() == 0:
					self.ip = arg
			case "JUMP_IF_NEG":
				if self.pop() < 0:
					self.ip = arg
			case "DISPATCH":
				if not self.callstack:
					raise self.fault("Return outside of a subroutine.")
				self.ip = arg[self.callstack.pop()]
			case "WRITE_CHAR":
				code = self.pop() & 0xFFFF
				try:
					self.out.write(chr(code))
				except UnicodeEncodeError:
					raise self.fault("Character code " + str(code) + " cannot be written.") from None
			case "WRITE_NUM":
				self.out.write(str(self.pop()))
			case "READ_CHAR":
				addr = self.pop()
				ch = self.inp.read(1)
				if ch == "":
					raise self.fault("End of input while reading a character.")
				self.getHeap()[addr] = ord(ch)
			case "READ_NUM":
				addr = self.pop()
				text = self.inp.readline()
				if text == "":
					raise self.fault("End of input while reading a number.")
				text = text.strip()
				if not NUMBER_INPUT.fullmatch(text):
					raise self.fault("Input \"" + text + "\" is not a number.")
				value = int(text)
				if not INT_MIN <= value <= INT_MAX:
					raise self.fault("Input " + text + " is out of range.")
				self.getHeap()[addr] = value
			case "HALT":
				self.halted = True
				return False
			case _:
				raise self.fault("Unknown opcode " + str(opcode) + ".")
		return True

	def arith(self, opcode, lhs, rhs):
		match opcode:
			case "ADD":
				return lhs + rhs
			case "SUB":
				return lhs - rhs
			case "MUL":
				return lhs * rhs
		if rhs == 0:
			raise self.fault("Division by zero.")
		if lhs == INT_MIN and rhs == -1:
			raise self.fault("Arithmetic overflow.")
		q = truncDiv(lhs, rhs)
		if opcode == "DIV":
			return q
		return lhs - rhs * q

	def run(self):
		while self.step():
			pass
		self.out.flush()

def loadArtifact(path):
	path = os.path.abspath(path)
	try:
		with gzip.open(path, "rb") as fileObj:
			artifact = pickle.load(fileObj)
	except (FileNotFoundError, PermissionError, OSError, EOFError, pickle.UnpicklingError):
		raise WSError("Could not read artifact \"" + path + "\".", "stdin", -1, -1, 0) from None

	if not isinstance(artifact, dict) or artifact.get("format") != ARTIFACT_FORMAT:
		raise WSError("\"" + path + "\" is not a compiled Whitespace program.", path, -1, -1, 0)
	return artifact

def checkArgs():
	argparser = argparse.ArgumentParser(description="Run a compiled Whitespace program.")
	argparser.add_argument("infile", help="Artifact produced by wsc, or a Whitespace source when --source is given.")
	argparser.add_argument("-s", "--source", action = "store_true", help="Treat INFILE as Whitespace source and compile it in memory first.")
	argparser.add_argument("-d", "--max-depth", default = 1000000, type = int, help="Maximum number of nested subroutine calls.")

	result = argparser.parse_args()
	result.infile = os.path.abspath(result.infile)
	return result

def main():
	arglist = checkArgs()
	try:
		if arglist.source:
			artifact = compileFile(arglist.infile, WSContext(0, 0, arglist.infile))
		else:
			artifact = loadArtifact(arglist.infile)
		VM(artifact, maxReturnDepth = arglist.max_depth).run()
	except WSError as e:
		sys.stdout.flush()
		printErrors(e)
		sys.exit(1)

if __name__ == "__main__":
	main()
