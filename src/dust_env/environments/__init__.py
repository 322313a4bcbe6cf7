"""Launching and tearing down container environments.

Handles the lifecycle of provisioned environments: configpath assembly, work
directory creation, container start, and exception-safe cleanup."""
