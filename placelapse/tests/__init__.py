"""
Test suite for placelapse.

Focus areas:
- Event shape decoding
- Canvas writes and clipping
- Replay cadence and determinism
- Store, ingest and CLI behaviour
"""
