"""
Utils package for MoodAgent.

Operator tooling (history reports) kept apart from the runtime packages.
"""
