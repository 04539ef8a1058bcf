"""Entry point for invoking the CEP lookup and label CLI."""

from __future__ import annotations

from cep_label.cli import run

if __name__ == "__main__":
    run()
