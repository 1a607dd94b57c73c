"""
Core modules for MoodAgent.

This package contains:
- Records and enums (core.models)
- Numeric primitives (core.stats)
- Durable store and artifact publishing (core.store, core.publisher)
- Collaborator interfaces and implementations (core.interfaces, core.sources)
- Clocks and periodic tasks (core.clock)
"""
