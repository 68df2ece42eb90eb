"""Core logic for signal evaluation, indicator classification and provider decoding.

This package contains pure business logic with no I/O dependencies
(no database or network access). The app/ package wires it to the
quote provider, the database and the HTTP API.
"""
