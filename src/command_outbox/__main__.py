"""Entrypoint: python -m command_outbox"""
from __future__ import annotations

from command_outbox.workers.outbox_sweeper import main

if __name__ == "__main__":
    main()
