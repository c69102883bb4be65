"""Block commits that leak secrets.

leakgate runs before a commit and:
- Locates a TruffleHog binary (env override, editor bundle, or system PATH)
- Scans each staged file, then verified secrets since HEAD, then the staged diff
- Stops at the first strategy that finds something and explains how to fix it
"""

__version__ = "0.1.0"

from leakgate.gate import GateController, GateResult, run_gate

__all__ = ["GateController", "GateResult", "__version__", "run_gate"]
