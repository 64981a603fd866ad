"""Client for planning-poker rooms: room lifecycle over HTTP plus the live state channel.

Kept free of any UI concerns so it can be driven from the CLI, a web frontend
adapter, or tests.
"""
