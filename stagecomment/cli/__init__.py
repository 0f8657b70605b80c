"""stagecomment CLI — Typer-based command-line interface.

Provides the ``stagecomment`` command with one subcommand per build phase
(``pre``, ``post``, ``failure``) and ``show`` for inspecting a saved
ledger comment.

All output uses Rich for formatted terminal display.
"""
