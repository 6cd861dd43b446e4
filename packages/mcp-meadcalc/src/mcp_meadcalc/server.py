"""
FastMCP server definition for MeadCalc.
"""

from fastmcp import FastMCP

from mcp_meadcalc.tools import register_tools

# Create the MCP server
mcp = FastMCP(
    "mcp-meadcalc",
    instructions=(
        "Mead and wine strength calculator: ABV from gravity readings, "
        "gravity from ingredients, ingredient amounts for a target ABV, "
        "and conversions between SG, Brix, Baumé, ABV and ABW."
    ),
)

# Register all tools
register_tools(mcp)
