"""
Task subsystem.

Components:
- task_models.py: TaskRecord, Priority and the normalize/defaulting rules
- backends.py: durable key-value backends (SQLite, in-memory)
- task_store.py: ordered collection with create/toggle/update/delete
- views.py: achievements and view-mode selection over a snapshot
- extraction.py: free text -> TaskRecord via the LLM
"""
