from __future__ import annotations


def main(argv: list[str] | None = None) -> int:
    # deferred so ``python -m t212_import.cli`` does not import __main__ twice
    from .__main__ import main as _main

    return _main(argv)


__all__ = ["main"]
