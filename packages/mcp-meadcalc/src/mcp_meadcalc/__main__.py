"""
MCP server entry point for MeadCalc.

Run with: python -m mcp_meadcalc
"""

import logging
import sys

from mcp_meadcalc.config import get_config


def main() -> None:
    # stdout carries the MCP transport, so logs go to stderr
    config = get_config()
    logging.basicConfig(
        stream=sys.stderr,
        level=config.log_level,
        format="[MEADCALC] %(levelname)s %(name)s: %(message)s",
    )
    logger = logging.getLogger("mcp_meadcalc")

    try:
        from mcp_meadcalc.server import mcp

        logger.info(
            "Starting MCP server (weight=%s, volume=%s)",
            config.weight_unit.value,
            config.volume_unit.value,
        )
        mcp.run(show_banner=False)
        logger.info("Server exited normally")
    except Exception:
        logger.exception("Fatal error starting MeadCalc MCP")
        sys.exit(1)


if __name__ == "__main__":
    main()
