from screenwarp.cli.main import main

__all__ = ["main"]
