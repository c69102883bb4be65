"""Allow running leakgate as ``python -m leakgate``."""

from leakgate.cli import app

if __name__ == "__main__":
    app()
