"""
mcp-meadcalc: MCP server exposing the mead-common calculators.
"""

__version__ = "0.1.0"
