# src/visual_exec/__main__.py

from visual_exec.cli.main import cli

if __name__ == "__main__":
    cli()
