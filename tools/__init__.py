"""Feature flag loader for domain tool modules.

Takes the ENABLED_DOMAINS setting (comma-separated) and imports only those
domain tool modules. Each module must expose a register(mcp) function.
"""

from __future__ import annotations

import importlib
import logging

from fastmcp import FastMCP

logger = logging.getLogger("timesheet_mcp.server")

__all__ = ["AVAILABLE_DOMAINS", "load_domains"]

# Map domain name -> module path.
AVAILABLE_DOMAINS: dict[str, str] = {
    "account": "tools.account",
    "teams": "tools.teams",
    "projects": "tools.projects",
    "tasks": "tools.tasks",
    "tags": "tools.tags",
    "rates": "tools.rates",
    "reports": "tools.reports",
}


def load_domains(mcp: FastMCP, raw: str) -> list[str]:
    """Import and register tool modules for each enabled domain.

    Raises SystemExit if no valid domains are enabled.

    Returns list of loaded domain names.
    """
    requested = [d.strip().lower() for d in raw.split(",") if d.strip()]

    if not requested:
        logger.critical("ENABLED_DOMAINS is empty - at least one domain must be enabled")
        raise SystemExit(1)

    loaded: list[str] = []
    for domain in requested:
        module_path = AVAILABLE_DOMAINS.get(domain)
        if module_path is None:
            logger.warning(
                "Unknown domain '%s' in ENABLED_DOMAINS - skipping. Available: %s",
                domain,
                sorted(AVAILABLE_DOMAINS.keys()),
            )
            continue
        if domain in loaded:
            continue

        module = importlib.import_module(module_path)
        module.register(mcp)
        loaded.append(domain)
        logger.info("Loaded domain: %s", domain)

    if not loaded:
        logger.critical("No valid domains loaded from ENABLED_DOMAINS=%r", raw)
        raise SystemExit(1)

    return loaded
