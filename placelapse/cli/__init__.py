"""
placelapse CLI - canvas time-lapse rendering

Commands:
- placelapse ingest - Load placement archives into an event store
- placelapse sort - Write a timestamp-sorted copy of a store
- placelapse render - Render a viewport and time window to video
- placelapse stats - Summarize a store
"""
