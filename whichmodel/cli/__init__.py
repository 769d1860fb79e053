"""Command line interface for whichmodel."""
