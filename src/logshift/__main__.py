"""Allow running as ``python -m logshift``."""

from logshift.cli.main import cli

if __name__ == "__main__":
    cli(obj={})
