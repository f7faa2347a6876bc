# File: zenogen/__main__.py
"""
Zeno Generator — Module entry point.

Allows running the generator directly via::

    python -m zenogen generate --schema-dir ./zeno --output-dir ./src

Delegates to ``zenogen.cli``.
"""

from __future__ import annotations


def main() -> None:
    from zenogen.cli import cli_main
    cli_main()


if __name__ == "__main__":
    main()
