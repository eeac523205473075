"""
Services Layer

Pure scheduling logic that:
- Accepts plain board data (dicts from the reservation API, or objects)
- Takes "now" as an argument, never reads the clock
- Returns derived values (statuses, conflicts, occurrences, layouts)
- Does NOT mutate its inputs
"""
