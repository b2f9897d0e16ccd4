"""Entry point for ``python -m tsanalysis_shims``."""

from tsanalysis_shims.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
