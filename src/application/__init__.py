"""
Application Layer - Use Cases and Orchestration

Responsibility:
    Drives the matching engine on behalf of the API, the CLI and Celery
    workers: candidate lookup, match decisions and resumable bulk runs.

Contains:
    - commands/: CreateMatchCommand, RemoveMatchCommand, ReviewMatchCommand
    - queries/: ListMatchesQuery and its handler
    - services/: MatchService, CandidateLookupService, BatchComparisonDriver
    - ports/: Protocols for checkpoint store, report sink, progress reporter
    - tasks/: Celery app and the background batch comparison task

Does NOT contain:
    - Scoring rules (Domain layer)
    - HTTP handling (API layer)
    - Redis, file or spreadsheet access (Infrastructure layer)
"""
