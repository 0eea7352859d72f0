"""Entry point: python -m servicegen

Reads an OpenAPI 3 document, writes TypeScript services under OUTPUT.
"""

from __future__ import annotations

from .cli import main

if __name__ == "__main__":
    main()
