"""
Relay Gateway Components.

- core/       - Constants, errors, connection context
- connection/ - Connection handles, registry, id generation
- events/     - Event types, codec, router
- metrics/    - Counters
- endpoints/  - WebSocket endpoints (base, mixins, handlers)

Import from the specific submodules; this package re-exports nothing so
that importing one component never drags in the others.
"""
