#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Application entrypoint for jrn.

This file is intentionally minimal. It resolves the configuration once,
sets up logging, and boots the Textual UI app.
"""
from __future__ import annotations

import logging

from jrn.logic import JournalConfig, resolve_config
from jrn.ui import JrnApp


def setup_logging(config: JournalConfig) -> None:
    """Log to the configured file; the terminal belongs to the UI."""
    if config.log_file is None:
        logging.getLogger().addHandler(logging.NullHandler())
        return
    logging.basicConfig(
        filename=str(config.log_file),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=getattr(logging, config.log_level, logging.INFO),
    )


def main() -> None:
    """Run the Textual application."""
    config = resolve_config()
    setup_logging(config)
    JrnApp(config).run()


if __name__ == "__main__":
    main()
