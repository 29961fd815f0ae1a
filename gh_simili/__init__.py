"""Issue transfer triage for GitHub with delayed, revertible actions."""

__version__ = "0.4.0"
