"""Command line programs of cfhooks.

- git-pre-commit-format (:mod:`cfhooks.cli.pre_commit`)
- apply-format (:mod:`cfhooks.cli.apply_format`)
"""
