#!/usr/bin/env python3
"""tql: editing support for the TQL query language.

Thin entry point that delegates to devex.lsp.server.
"""

from src.devex.lsp.server import main

if __name__ == "__main__":
    main()
