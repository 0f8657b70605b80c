"""Ledger core — codec, reconciler and the update cycle around them.

Modules
-------
codec
    Markdown table <-> ``LedgerState`` (parse / render, sentinel matching).
reconciler
    Pure merge of one new ``BuildEntry`` into the prior ``LedgerState``.
events, formatting, narrative, staging
    Building entries and comment text from a CI build's context.
updater
    ``LedgerUpdater`` — decode, reconcile, encode and write one comment.
"""
