"""tabkeeper - save browser tabs as named workspaces and reopen them later."""

__version__ = "0.1.0"
