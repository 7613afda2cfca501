"""
Application Layer

Orchestrates per-room playback: the playback state machine, the room
facade, the room registry, and the collaborator ports they depend on.
"""
