"""Infrastructure layer: vault storage, processing locks, file watching.

It must never import from services, commands, or output.
The service layer bridges between domain rules and infrastructure.
"""
