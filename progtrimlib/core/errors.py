#!/usr/bin/env python3

#============================================

class ProgtrimError(RuntimeError):
	pass

#============================================

class ExternalToolError(ProgtrimError):
	def __init__(self, cmd: list, returncode: int = None, stderr_text: str = ""):
		self.cmd = list(cmd)
		self.returncode = returncode
		self.stderr_text = stderr_text
		tool = self.cmd[0] if len(self.cmd) > 0 else "command"
		if returncode is None:
			message = f"{tool} could not be started"
		else:
			message = f"{tool} exited with status {returncode}"
		if stderr_text:
			message += f"\n{stderr_text}"
		super().__init__(message)

#============================================

class DurationParseError(ProgtrimError):
	pass

#============================================

class ConfigError(ProgtrimError):
	pass
