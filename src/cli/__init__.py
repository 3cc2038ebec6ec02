"""
CLI (Command Line Interface) for the dev/prod page comparison tool.

This is a thin wrapper around the core engine. All business logic lives
in the sitediff package so other front ends can reuse it.
"""
