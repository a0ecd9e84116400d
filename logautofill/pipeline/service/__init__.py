"""
Reconciliation pipeline.

Module Structure:
-----------------
- csv_decoder.py: spreadsheet export -> rows
- voice_normalizer.py: spoken digits -> field values
- validators.py: confidence tagging, submission gate, payload shaping
- reconciler.py: review table edits
- history.py: export rows -> synced records, search
- orchestrator.py: session state machine (entry point)
"""
