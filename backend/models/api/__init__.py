"""
Pydantic models for remote API payloads
"""
