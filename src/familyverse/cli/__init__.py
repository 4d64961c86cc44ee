"""Command line interface for the FamilyVerse widget."""

from familyverse.cli.main import familyverse, main

__all__ = ["familyverse", "main"]
