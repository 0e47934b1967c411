# src/shelter/__main__.py

from shelter.cli.main import cli

if __name__ == "__main__":
    cli()
