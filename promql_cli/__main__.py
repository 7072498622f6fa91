"""Entry point for running promql_cli as a module.

Supports: python -m promql_cli [query|range] ...
"""

from .cli import app

if __name__ == "__main__":
    app(prog_name="promql")
