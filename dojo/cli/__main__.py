"""Allow running the CLI with ``python -m dojo.cli``."""
from . import cli

if __name__ == "__main__":
    cli(obj={})
