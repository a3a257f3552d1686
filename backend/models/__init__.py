"""
Models for the voting engine.

- models.domain: dataclasses the engine works with (Voter, Submission)
- models.api: pydantic models for remote API payloads
"""
